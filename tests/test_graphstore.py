import json

import pytest

import graphstore
from errors import InvalidFilterSelectionError, MalformedDatasetError, UnknownNodeError


class TestLoad:

    def test_counts_and_resolved_endpoints(self, raw):
        data = graphstore.load(raw)
        assert data.node_count == 5
        assert data.edge_count == 6
        edge = data.edges[0]
        assert edge.getSource() is data.node(1)
        assert edge.getTarget() is data.node(2)
        assert edge.key() == (1, 2)

    def test_node_attributes(self, raw):
        node = graphstore.load(raw).node(4)
        assert node.state == "MA"
        assert node.getAttribute("region") == "Back Bay"
        assert not node.hasPosition()
        assert not node.isPinned()

    def test_unknown_node_id(self, raw):
        with pytest.raises(UnknownNodeError, match="42"):
            graphstore.load(raw).node(42)

    def test_attribute_values_become_strings(self, raw):
        raw["nodes"][0]["region"] = 12
        data = graphstore.load(raw)
        assert data.node(1).region == "12"

    def test_unknown_endpoint_is_fatal(self, raw):
        raw["links"].append({"source": 1, "target": 99})
        with pytest.raises(MalformedDatasetError):
            graphstore.load(raw)

    def test_missing_attribute_is_fatal(self, raw):
        del raw["nodes"][2]["vendor"]
        with pytest.raises(MalformedDatasetError, match="vendor"):
            graphstore.load(raw)

    def test_null_attribute_is_fatal(self, raw):
        raw["nodes"][2]["city"] = None
        with pytest.raises(MalformedDatasetError):
            graphstore.load(raw)

    def test_duplicate_id_is_fatal(self, raw):
        raw["nodes"][1]["id"] = 1
        with pytest.raises(MalformedDatasetError, match="Duplicate"):
            graphstore.load(raw)

    def test_link_without_target(self, raw):
        raw["links"].append({"source": 1})
        with pytest.raises(MalformedDatasetError):
            graphstore.load(raw)

    @pytest.mark.parametrize("payload", [[], {"nodes": {}, "links": []}, {"nodes": []}])
    def test_bad_shapes(self, payload):
        with pytest.raises(MalformedDatasetError):
            graphstore.load(payload)

    def test_empty_graph(self):
        data = graphstore.load({"nodes": [], "links": []})
        assert data.node_count == 0
        assert data.enumerations.states == ()


class TestAttributeIndex:

    def test_first_seen_order(self, raw):
        index = graphstore.load(raw).attribute_index
        assert index.states() == ("TN", "MA")
        assert index.cities("TN") == ("Chennai", "Madurai")
        assert index.regions("TN", "Chennai") == ("North", "South")
        assert index.vendors() == ("V1", "V2")
        assert index.types() == ("router", "switch")

    def test_regions_are_distinct(self, raw):
        raw["nodes"].append({"id": 6, "state": "TN", "city": "Chennai", "region": "North",
                             "vendor": "V3", "type": "router"})
        index = graphstore.load(raw).attribute_index
        assert index.regions("TN", "Chennai") == ("North", "South")
        assert index.vendors() == ("V1", "V2", "V3")

    def test_absent_keys_raise(self, raw):
        index = graphstore.load(raw).attribute_index
        with pytest.raises(InvalidFilterSelectionError):
            index.cities("Goa")
        with pytest.raises(InvalidFilterSelectionError) as info:
            index.regions("TN", "Boston")
        assert info.value.parent == "TN"

    def test_as_dict(self, raw):
        tree = graphstore.load(raw).attribute_index.as_dict()
        assert tree["MA"] == {"Boston": ["Back Bay"], "Cambridge": ["Central"]}


class TestEnumerations:

    def test_taken_from_payload(self, raw):
        raw["state"] = ["MA", "TN", "WB"]
        data = graphstore.load(raw)
        assert data.enumerations.states == ("MA", "TN", "WB")

    def test_fall_back_to_index(self, raw):
        del raw["state"], raw["vendor"], raw["type"]
        enums = graphstore.load(raw).enumerations
        assert enums.states == ("TN", "MA")
        assert enums.vendors == ("V1", "V2")
        assert enums.types == ("router", "switch")

    def test_numeric_values_match_node_attributes(self, raw):
        for i, node in enumerate(raw["nodes"]):
            node["type"] = i % 2 + 1
        raw["type"] = [1, 2]
        data = graphstore.load(raw)
        assert data.enumerations.types == ("1", "2")
        assert data.node(2).type == "2"

    @pytest.mark.parametrize("values", ["TN", [["TN"]], [None], [{"name": "TN"}]])
    def test_rejects_non_scalar_entries(self, raw, values):
        raw["state"] = values
        with pytest.raises(MalformedDatasetError):
            graphstore.load(raw)

    def test_stats(self, raw):
        assert graphstore.load(raw).stats() == {
            "nodes": 5, "edges": 6, "states": 2, "vendors": 2, "types": 2,
        }


class TestLoadFile:

    def test_reads_json(self, raw, tmp_path):
        path = tmp_path / "newdata.json"
        path.write_text(json.dumps(raw), encoding="utf-8")
        assert graphstore.load_file(path).node_count == 5

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{nodes:", encoding="utf-8")
        with pytest.raises(MalformedDatasetError):
            graphstore.load_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(MalformedDatasetError):
            graphstore.load_file(tmp_path / "absent.json")
