"""Elasticsearch index and document operations against the running stack."""

import pytest

pytestmark = pytest.mark.integration

TEST_INDICES = ["test_index", "test_mapped", "test_temp", "test_documents"]
DOC_INDEX = "test_documents"


@pytest.fixture(scope="module", autouse=True)
def clean_indices(search):
    for index in TEST_INDICES:
        search.delete_index(index)
    yield
    for index in TEST_INDICES:
        search.delete_index(index)


class TestConnectivity:

    def test_cluster_info(self, search):
        info = search.client.info()
        assert info["cluster_name"]
        assert info["version"]["number"]

    def test_cluster_health(self, search):
        assert search.health_status() in ("green", "yellow")


class TestIndexOperations:

    def test_create_index(self, search):
        search.create_index("test_index")
        assert search.index_exists("test_index")

    def test_create_index_with_mapping(self, search):
        search.create_index("test_mapped", {
            "properties": {
                "email": {"type": "keyword"},
                "name": {"type": "text"},
                "age": {"type": "integer"},
                "created_at": {"type": "date"},
            }
        })

        mapping = search.client.indices.get_mapping(index="test_mapped")
        properties = mapping["test_mapped"]["mappings"]["properties"]
        assert properties["email"]["type"] == "keyword"
        assert properties["age"]["type"] == "integer"

    def test_delete_index(self, search):
        search.create_index("test_temp")

        assert search.delete_index("test_temp") is True
        assert not search.index_exists("test_temp")


class TestDocumentOperations:
    """Runs in order against one index."""

    @pytest.fixture(scope="class", autouse=True)
    def doc_index(self, search):
        search.create_index(DOC_INDEX, {
            "properties": {
                "email": {"type": "keyword"},
                "name": {"type": "text"},
                "value": {"type": "double"},
            }
        })

    def test_index_and_get(self, search):
        search.index_document(
            DOC_INDEX, {"email": "alice@example.com", "name": "Alice", "value": 1.5}, "1",
            refresh=True)

        doc = search.get_document(DOC_INDEX, "1")
        assert doc == {"email": "alice@example.com", "name": "Alice", "value": 1.5}

    def test_search_all(self, search):
        search.index_document(
            DOC_INDEX, {"email": "bob@example.com", "name": "Bob", "value": 2.5}, "2",
            refresh=True)

        emails = {doc["email"] for doc in search.search_documents(DOC_INDEX)}
        assert {"alice@example.com", "bob@example.com"} <= emails

    def test_term_query(self, search):
        docs = search.find_by_term(DOC_INDEX, "email", "alice@example.com")

        assert [doc["email"] for doc in docs] == ["alice@example.com"]

    def test_wait_for_document_count(self, search):
        assert search.wait_for_document_count(DOC_INDEX, 2, timeout=5) >= 2

    def test_update(self, search):
        search.update_document(DOC_INDEX, "1", {"name": "Alice Updated"}, refresh=True)

        assert search.get_document(DOC_INDEX, "1")["name"] == "Alice Updated"

    def test_delete(self, search):
        search.delete_document(DOC_INDEX, "2", refresh=True)

        assert len(search.search_documents(DOC_INDEX)) == 1
