import json

from flyte.audit_api import (
    flow_response,
    flows_filter_from_query,
    flows_response,
    get_flow,
    get_flows,
    key_value_pairs,
)
from flyte.audit_model import Action, EventDef, Flow, State, Step
from flyte.audit_repo import FlowsFilter
from flyte.web import HEADER_CONTENT_TYPE, MEDIA_TYPE_JSON

BASE = "http://example.com"

NAV_LINKS = (
    '"links":[{"href":"http://example.com/v1/audit/flows","rel":"self"},'
    '{"href":"http://example.com/v1","rel":"up"},'
    '{"href":"http://example.com/swagger#/flowExecs","rel":"help"}]'
)
EMPTY_EVENT = (
    '{"event":"","pack":{"id":"","name":""},'
    '"createdAt":"0001-01-01T00:00:00Z","receivedAt":"0001-01-01T00:00:00Z"}'
)
STEP = (
    '[{"id":"stepA","event":{"name":"eventA","packName":"packA"},'
    '"command":{"name":"","packName":"","input":null}}]'
)


class FakeRepository:
    def __init__(self, find=None, get=None):
        self._find = find
        self._get = get

    def find(self, flows_filter):
        return self._find(flows_filter)

    def get(self, correlation_id):
        return self._get(correlation_id)


def step_a():
    return Step(id="stepA", event=EventDef(name="eventA", pack_name="packA"))


def action_json(name, with_states=False, step="stepA"):
    states = ',"states":[{"value":"","time":"0001-01-01T00:00:00Z"}]' if with_states else ""
    return (
        f'{{"id":"","name":"{name}","packName":"",'
        f'"state":{{"value":"","time":"0001-01-01T00:00:00Z"}}{states},'
        f'"correlationId":"","flowName":"","flowUUID":"","stepId":"{step}",'
        f'"trigger":{EMPTY_EVENT},"result":{EMPTY_EVENT}}}'
    )


def test_get_flows_returns_flows_with_links():
    def find(flows_filter):
        flow_a = Flow(
            name="flowDefA",
            uuid="flowDefAV1",
            correlation_id="flowA",
            steps=[step_a()],
            actions={"stepA": Action(name=flows_filter.action_name, step_id="stepA", states=[State()])},
        )
        flow_b = Flow(
            name="flowDefA",
            uuid="flowDefAV2",
            correlation_id="flowB",
            steps=[step_a()],
            actions={"stepA": Action(name=flows_filter.action_name, step_id="stepA")},
        )
        return [flow_a, flow_b]

    response = get_flows(FakeRepository(find=find), BASE, {"actionName": "actionA"})

    expected = (
        '{"flows":['
        '{"name":"flowDefA","uuid":"flowDefAV1","correlationId":"flowA","steps":' + STEP + ','
        '"actions":{"stepA":' + action_json("actionA", with_states=True) + '},'
        '"links":[{"href":"http://example.com/v1/audit/flows/flowA","rel":"self"}]},'
        '{"name":"flowDefA","uuid":"flowDefAV2","correlationId":"flowB","steps":' + STEP + ','
        '"actions":{"stepA":' + action_json("actionA") + '},'
        '"links":[{"href":"http://example.com/v1/audit/flows/flowB","rel":"self"}]}],'
        + NAV_LINKS + "}"
    )
    assert response.status == 200
    assert response.headers[HEADER_CONTENT_TYPE] == MEDIA_TYPE_JSON
    assert json.loads(response.body) == json.loads(expected)


def test_get_flows_filtered_by_flow_name():
    seen = []

    def find(flows_filter):
        seen.append(flows_filter.flow_name)
        return [
            Flow(
                name="flowA",
                uuid="flowDefA",
                correlation_id="flowA",
                steps=[step_a()],
                actions={"stepA": Action(name="actionA", step_id="stepA")},
            )
        ]

    response = get_flows(FakeRepository(find=find), BASE, {"flowName": "flowA"})

    expected = (
        '{"flows":[{"name":"flowA","uuid":"flowDefA","correlationId":"flowA","steps":' + STEP + ','
        '"actions":{"stepA":' + action_json("actionA") + '},'
        '"links":[{"href":"http://example.com/v1/audit/flows/flowA","rel":"self"}]}],'
        + NAV_LINKS + "}"
    )
    assert seen == ["flowA"]
    assert response.status == 200
    assert response.headers[HEADER_CONTENT_TYPE] == MEDIA_TYPE_JSON
    assert response.body.decode() == expected


def test_get_flows_extracts_filter_parameters():
    got = []

    def find(flows_filter):
        got.append(flows_filter)
        return None

    query = {
        "flowName": "flowA",
        "stepId": "stepA",
        "actionName": "actionA",
        "actionPackName": "packA",
        "actionPackLabels": "env:dev,foo:bar",
        "start": "10",
        "limit": "10",
    }
    response = get_flows(FakeRepository(find=find), BASE, query)

    assert response.status == 200
    assert got == [
        FlowsFilter(
            flow_name="flowA",
            step_id="stepA",
            action_name="actionA",
            action_pack_name="packA",
            action_pack_labels={"env": "dev", "foo": "bar"},
            skip=10,
            limit=10,
        )
    ]


def test_get_flows_with_no_flows():
    response = get_flows(FakeRepository(find=lambda flt: None), BASE, {})
    assert response.status == 200
    assert response.headers[HEADER_CONTENT_TYPE] == MEDIA_TYPE_JSON
    assert response.body.decode() == '{"flows":[],' + NAV_LINKS + "}"


def test_get_flows_returns_500_on_error():
    def find(flows_filter):
        raise RuntimeError("expected error")

    assert get_flows(FakeRepository(find=find), BASE, {}).status == 500


def test_get_flow_returns_flow_with_actions():
    def get(correlation_id):
        return Flow(
            name="flowDef",
            uuid="flowDefV1",
            correlation_id=correlation_id,
            steps=[step_a()],
            actions={"stepA": Action(step_id="stepA", correlation_id=correlation_id)},
        )

    response = get_flow(FakeRepository(get=get), BASE, "")

    expected = (
        '{"name":"flowDef","uuid":"flowDefV1","correlationId":"","steps":' + STEP + ','
        '"actions":{"stepA":' + action_json("") + '},'
        '"links":[{"href":"http://example.com/v1/audit/flows","rel":"self"}]}'
    )
    assert response.status == 200
    assert response.headers[HEADER_CONTENT_TYPE] == MEDIA_TYPE_JSON
    assert response.body.decode() == expected


def test_get_flow_returns_404_for_unknown_flow():
    response = get_flow(FakeRepository(get=lambda cid: None), BASE, "nonExistingFlow")
    assert response.status == 404


def test_get_flow_returns_500_on_error():
    def get(correlation_id):
        raise RuntimeError("expected error")

    assert get_flow(FakeRepository(get=get), BASE, "errorFlow").status == 500


def test_key_value_pairs():
    assert key_value_pairs("env:dev,foo:bar") == {"env": "dev", "foo": "bar"}
    assert key_value_pairs("") == {}
    assert key_value_pairs(" a : b ,bad,c:d:e") == {"a": "b"}


def test_filter_defaults_and_invalid_numbers():
    flt = flows_filter_from_query({"start": "abc", "limit": "x"})
    assert flt.skip == 0
    assert flt.limit == 50
    assert flows_filter_from_query(None) == FlowsFilter(skip=0, limit=50)


def test_filter_takes_first_of_repeated_values():
    flt = flows_filter_from_query({"flowName": ["first", "second"], "limit": ["5"]})
    assert flt.flow_name == "first"
    assert flt.limit == 5


def test_flow_response_self_link():
    body = flow_response(BASE, Flow(correlation_id="abc"))
    assert body["links"] == [{"href": "http://example.com/v1/audit/flows/abc", "rel": "self"}]


def test_flows_response_links_with_trailing_slash_base():
    body = flows_response(BASE + "/", [])
    assert body["flows"] == []
    assert [link["href"] for link in body["links"]] == [
        "http://example.com/v1/audit/flows",
        "http://example.com/v1",
        "http://example.com/swagger#/flowExecs",
    ]