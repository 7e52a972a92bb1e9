import logging

from db import CompanyStore
from errors import CompanyNotFoundError, InvalidQueryError, StoreError
from models import CompanyRecord, LookupOutcome
from services.matcher import find_record
from services.normalize import normalize

logger = logging.getLogger(__name__)


class CompanyLookupService:
    """Answers "fetch company by name" against a connected CompanyStore."""

    def __init__(self, store: CompanyStore):
        self.store = store

    async def get_company(self, name: str) -> CompanyRecord:
        """
        Find and normalize the company stored under (roughly) `name`.

        Raises CompanyNotFoundError when nothing matches yet, StoreError when
        the store could not be queried, InvalidQueryError for a blank name.
        """
        if name is None or not name.strip():
            raise InvalidQueryError("Company name must not be empty")

        match = await find_record(name, self.store)
        if match is None:
            logger.info("No company record for %r yet", name)
            raise CompanyNotFoundError(name)

        logger.info("Found %r for query %r via %s", match.stored_name, name, match.strategy.value)
        return normalize(match.document)

    async def lookup(self, name: str) -> LookupOutcome:
        """Same as get_company, folded into a tagged result for pollers."""
        try:
            return LookupOutcome.found(await self.get_company(name))
        except CompanyNotFoundError:
            return LookupOutcome.not_found()
        except StoreError as e:
            return LookupOutcome.transient(str(e))
        except InvalidQueryError as e:
            return LookupOutcome.fatal(str(e))
