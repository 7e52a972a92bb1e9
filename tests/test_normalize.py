"""Tests for record normalization."""

from services.normalize import normalize, normalize_value, safe_url


def _no_noise(value):
    if isinstance(value, dict):
        return all(_no_noise(v) for v in value.values())
    return value is not None and value != "" and value != []


class TestNormalizeValue:
    def test_none_and_blank(self):
        assert normalize_value(None) is None
        assert normalize_value("") is None
        assert normalize_value("   ") is None

    def test_scalars_pass_through(self):
        assert normalize_value(1999) == 1999
        assert normalize_value(4.5) == 4.5
        assert normalize_value(False) is False
        assert normalize_value("Acme") == "Acme"

    def test_list_is_flattened_and_joined(self):
        assert normalize_value(["a", ["b", ["c", None]], "", "d"]) == "a, b, c, d"

    def test_list_of_numbers(self):
        assert normalize_value([0.1, 0.2]) == "0.1, 0.2"

    def test_empty_or_blank_list_is_none(self):
        assert normalize_value([]) is None
        assert normalize_value([None, "", [" "]]) is None

    def test_mapping_drops_empty_fields(self):
        assert normalize_value({"city": "Berlin", "zip": "", "tags": []}) == {"city": "Berlin"}
        assert normalize_value({"city": None}) is None

    def test_mapping_inside_list(self):
        assert normalize_value([{"name": "Ref A", "url": None}, "Ref B"]) == "name: Ref A, Ref B"


class TestSafeUrl:
    def test_adds_scheme_to_bare_host(self):
        assert safe_url("acme.com") == "https://acme.com"

    def test_keeps_http_and_https(self):
        assert safe_url("http://acme.com/about") == "http://acme.com/about"
        assert safe_url("https://acme.com") == "https://acme.com"

    def test_rejects_empty_and_non_strings(self):
        assert safe_url("") is None
        assert safe_url(None) is None
        assert safe_url(42) is None

    def test_rejects_text_that_is_not_a_host(self):
        assert safe_url("not a url") is None
        assert safe_url("acme.com, acme.io") is None

    def test_rejects_script_scheme(self):
        assert safe_url("javascript:alert(1)") is None

    def test_rejects_bad_port(self):
        assert safe_url("acme.com:notaport") is None
        assert safe_url("https://acme.com:8443/x") == "https://acme.com:8443/x"


class TestNormalize:
    def test_full_record(self, acme_document):
        record = normalize(acme_document).model_dump(exclude_none=True)

        assert record["name"] == "Acme"
        assert record["foundedYear"] == 1999
        assert record["pros"] == "Good pay, Flexible hours"
        assert record["services"] == "Anvils, Rockets"
        assert record["embedding"] == "0.1, 0.2, 0.3"
        assert record["website"] == "https://acme.com"
        assert "email" not in record
        assert "phone" not in record
        assert "cons" not in record
        assert "_id" not in record
        assert "topReferences" not in record
        assert all(_no_noise(v) for v in record.values())

    def test_references_fall_through_when_preferred_is_empty(self):
        record = normalize({"name": "Acme", "topReferences": [], "references": ["Ref A", None, ""]})
        assert record.references == "Ref A"

    def test_references_fall_through_when_preferred_cleans_to_nothing(self):
        record = normalize({"topReferences": [None, "  "], "references": ["Ref B"]})
        assert record.references == "Ref B"

    def test_preferred_references_win(self):
        record = normalize({"topReferences": ["Top 1", "Top 2"], "references": ["Ref A"]})
        assert record.references == "Top 1, Top 2"

    def test_no_references_at_all(self):
        assert normalize({"name": "Acme", "references": []}).references is None

    def test_nested_location_is_cleaned(self):
        record = normalize({"location": {"city": "Pune", "country": "India", "zip": None}})
        assert record.location == {"city": "Pune", "country": "India"}

    def test_list_valued_website_keeps_first_usable_link(self):
        record = normalize({"website": [None, "not a url", ["acme.com", "acme.io"]]})
        assert record.website == "https://acme.com"

    def test_junk_links_are_absent(self):
        record = normalize({"website": "not a url", "linkedin": "javascript:alert(1)"})
        assert record.website is None
        assert record.linkedin is None

    def test_empty_link_fields_are_absent(self):
        record = normalize({"website": "  ", "linkedin": []})
        assert record.website is None
        assert record.linkedin is None
