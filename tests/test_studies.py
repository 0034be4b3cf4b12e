"""Tests for the study results client and listing"""
import json
import pytest
import requests
from studyquery.models.study import StudyRecord
from studyquery.services.studies import (
    EMPTY_QUERY_MESSAGE,
    NO_DATA_MESSAGE,
    ResultsView,
    StudiesClient,
    StudiesService,
    encode_query,
)

BASE_URL = "http://studies.test/api"


def make_response(status_code=200, body=None, raw=None):
    """Build a real requests.Response with the given status and body"""
    response = requests.Response()
    response.status_code = status_code
    response._content = raw if raw is not None else json.dumps(body).encode()
    return response


class FakeSession:
    """Stands in for requests.Session and records requested URLs"""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def client_for(session):
    return StudiesClient(BASE_URL, timeout=3, session=session)


SAMPLE_RESULTS = {
    "results": [
        {"title": "Fear and the amygdala", "authors": "Smith, J", "journal": "NeuroImage",
         "year": 2003, "pmid": 12345, "n_contrasts": 4},
        {"title": "Memory", "authors": ["Doe, A", "Roe, B"], "journal": "Brain",
         "year": "2019", "id": "x1", "study_id": "s1", "contrast": 0, "contrasts": 5},
        {"title": "No id", "year": None},
    ]
}


def test_encode_query_matches_uri_component():
    """Test that the query is encoded as a single path segment"""
    assert encode_query("[-22,-4,18] NOT emotion") == "%5B-22%2C-4%2C18%5D%20NOT%20emotion"
    assert encode_query("(a OR b)") == "(a%20OR%20b)"
    assert encode_query("x/y") == "x%2Fy"


def test_fetch_empty_query_makes_no_request():
    """Test that no lookup happens without a query"""
    session = FakeSession(make_response(200, SAMPLE_RESULTS))

    assert client_for(session).fetch("") == []
    assert session.calls == []


def test_fetch_builds_url_and_parses_records():
    """Test a successful lookup"""
    session = FakeSession(make_response(200, SAMPLE_RESULTS))

    records = client_for(session).fetch("fear AND memory")

    assert session.calls == [(f"{BASE_URL}/query/fear%20AND%20memory/studies", 3)]
    assert len(records) == 3
    assert records[0].title == "Fear and the amygdala"
    assert records[0].year == 2003


def test_record_alias_resolution():
    """Test the fixed priority order for id and contrast count"""
    first = StudyRecord.from_payload(SAMPLE_RESULTS["results"][0])
    second = StudyRecord.from_payload(SAMPLE_RESULTS["results"][1])
    third = StudyRecord.from_payload(SAMPLE_RESULTS["results"][2])

    assert first.study_id == "12345"
    assert first.contrast_count == 4
    assert second.study_id == "s1"
    assert second.contrast_count == 0
    assert third.study_id is None
    assert third.contrast_count is None


def test_record_null_alias_falls_through():
    """Test that a null field does not shadow a later alias"""
    record = StudyRecord.from_payload({"study_id": None, "id": 7, "contrast": None, "nContrasts": 2})

    assert record.study_id == "7"
    assert record.contrast_count == 2


def test_record_authors_list_and_pubmed_url():
    """Test author lists are joined and the PubMed link is derived from the id"""
    record = StudyRecord.from_payload(SAMPLE_RESULTS["results"][1])

    assert record.authors == "Doe, A, Roe, B"
    assert record.pubmed_url == "https://pubmed.ncbi.nlm.nih.gov/s1/"
    assert StudyRecord.from_payload({"title": "t"}).pubmed_url is None


def test_fetch_server_error_gives_empty_results():
    """Test that a genuine 5xx response is shown as no results"""
    session = FakeSession(make_response(500, {"error": "boom"}))

    assert client_for(session).fetch("fear") == []
    assert len(session.calls) == 1


def test_fetch_error_status_with_non_json_body():
    """Test that an HTML error page is shown as no results"""
    session = FakeSession(make_response(503, raw=b"<html>Service Unavailable</html>"))

    assert client_for(session).fetch("fear") == []


def test_fetch_not_found_gives_empty_results():
    """Test that client errors are treated the same way"""
    session = FakeSession(make_response(404, {"results": [{"title": "ignored"}]}))

    assert client_for(session).fetch("fear") == []


@pytest.mark.parametrize("error", [
    requests.ConnectionError("refused"),
    requests.Timeout("slow"),
])
def test_fetch_transport_failure_gives_empty_results(error):
    """Test that network failures are shown as no results"""
    session = FakeSession(error=error)

    assert client_for(session).fetch("fear") == []


@pytest.mark.parametrize("body", [
    {},
    {"results": None},
    {"results": "nope"},
    [1, 2, 3],
])
def test_fetch_without_results_array(body):
    """Test that a body without a results array gives no records"""
    session = FakeSession(make_response(200, body))

    assert client_for(session).fetch("fear") == []


def test_fetch_malformed_json():
    """Test that an unparseable success body gives no records"""
    session = FakeSession(make_response(200, raw=b"{not json"))

    assert client_for(session).fetch("fear") == []


def test_fetch_skips_non_object_entries():
    """Test that non-object entries in the results array are ignored"""
    session = FakeSession(make_response(200, {"results": ["x", None, {"title": "kept"}]}))

    records = client_for(session).fetch("fear")

    assert [r.title for r in records] == ["kept"]


def test_change_sort_toggles_and_switches():
    """Test sort header behaviour"""
    view = ResultsView()

    assert (view.sort_key, view.direction) == ("year", "desc")

    view = view.change_sort("year")
    assert (view.sort_key, view.direction) == ("year", "asc")

    view = view.change_sort("title")
    assert (view.sort_key, view.direction) == ("title", "asc")

    view = view.change_sort("title")
    assert (view.sort_key, view.direction) == ("title", "desc")

    with pytest.raises(ValueError):
        view.change_sort("pmid")


def test_sort_by_year_numeric():
    """Test that years sort numerically with missing years as zero"""
    records = [
        StudyRecord(title="a", year="2019"),
        StudyRecord(title="b", year=2003),
        StudyRecord(title="c"),
        StudyRecord(title="d", year=2021),
    ]

    desc = ResultsView(sort_key="year", direction="desc").sort(records)
    asc = ResultsView(sort_key="year", direction="asc").sort(records)

    assert [r.title for r in desc] == ["d", "a", "b", "c"]
    assert [r.title for r in asc] == ["c", "b", "a", "d"]


def test_sort_by_text_field():
    """Test that text fields sort case-insensitively with missing values first"""
    records = [
        StudyRecord(title="b", journal="brain"),
        StudyRecord(title="a", journal="Annals"),
        StudyRecord(title="c"),
    ]

    assert [r.title for r in ResultsView(sort_key="journal", direction="asc").sort(records)] == ["c", "a", "b"]


def test_paging():
    """Test page counts and clamping"""
    view = ResultsView(page_size=20)

    assert view.total_pages(0) == 1
    assert view.total_pages(20) == 1
    assert view.total_pages(41) == 3
    assert view.go_to(0, 41).page == 1
    assert view.go_to(9, 41).page == 3

    records = [StudyRecord(title=str(i)) for i in range(45)]
    assert [r.title for r in view.go_to(3, 45).page_rows(records)] == ["40", "41", "42", "43", "44"]


def test_service_empty_query_status():
    """Test that an empty query shows the prompt, not 'No data'"""
    session = FakeSession(make_response(200, SAMPLE_RESULTS))
    service = StudiesService(client_for(session))

    page = service.search("")

    assert page.status == "empty_query"
    assert page.message == EMPTY_QUERY_MESSAGE
    assert page.results == []
    assert session.calls == []


def test_service_no_data_status_on_failure():
    """Test that an upstream 5xx shows 'No data' with no error"""
    service = StudiesService(client_for(FakeSession(make_response(502, {"error": "bad gateway"}))))

    page = service.search("fear")

    assert page.status == "no_data"
    assert page.message == NO_DATA_MESSAGE
    assert page.total == 0
    assert page.total_pages == 1


def test_service_results_page():
    """Test a sorted, paged result listing"""
    service = StudiesService(client_for(FakeSession(make_response(200, SAMPLE_RESULTS))), page_size=2)

    page = service.search("fear", sort="year", direction="desc", page=1)

    assert page.status == "results"
    assert page.message is None
    assert page.total == 3
    assert page.total_pages == 2
    assert [r.title for r in page.results] == ["Memory", "Fear and the amygdala"]
    assert page.results[1].pubmed_url == "https://pubmed.ncbi.nlm.nih.gov/12345/"


def test_service_rejects_unknown_sort():
    """Test that sort parameters are validated"""
    service = StudiesService(client_for(FakeSession(make_response(200, SAMPLE_RESULTS))))

    with pytest.raises(ValueError):
        service.search("fear", sort="pmid")

    with pytest.raises(ValueError):
        service.search("fear", direction="up")


def test_fetch_keeps_rows_with_numeric_display_fields():
    """Test that non-string titles, journals and fractional years are kept"""
    session = FakeSession(make_response(200, {"results": [
        {"title": 12345, "year": 2020},
        {"title": "ok", "year": 2020.5},
        {"title": "ok2", "journal": 7},
        {"title": "good", "year": 2020, "n_contrasts": 1.5},
    ]}))

    records = client_for(session).fetch("fear")

    assert [r.title for r in records] == ["12345", "ok", "ok2", "good"]
    assert records[1].year == 2020.5
    assert records[2].journal == "7"
    assert records[3].contrast_count == 1.5


def test_record_stringifies_nested_values():
    """Test that odd upstream shapes are shown as text instead of dropped"""
    record = StudyRecord.from_payload({"title": ["Part", "Two"], "year": {"value": 2001}, "contrast": [1, 2]})

    assert record.title == "Part, Two"
    assert record.year == "{'value': 2001}"
    assert record.contrast_count == "[1, 2]"


def test_fetch_blank_query_makes_no_request():
    """Test that a whitespace-only query is treated as empty"""
    session = FakeSession(make_response(200, SAMPLE_RESULTS))

    assert client_for(session).fetch("   ") == []
    assert session.calls == []


def test_service_blank_query_status():
    """Test that a whitespace-only query shows the prompt"""
    service = StudiesService(client_for(FakeSession(make_response(200, SAMPLE_RESULTS))))

    page = service.search("  \t ")

    assert page.status == "empty_query"
    assert page.message == EMPTY_QUERY_MESSAGE
