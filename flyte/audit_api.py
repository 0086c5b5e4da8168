"""HTTP handlers and views for flow executions recorded in the audit store."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Mapping, Optional

from .audit_model import Flow
from .audit_repo import DEFAULT_LIMIT, FlowsFilter
from .web import Link, Response, join, json_response

logger = logging.getLogger(__name__)

AUDIT_FLOW_PATH = "/v1/audit/flows"
AUDIT_DOC_PATH = "/swagger#/flowExecs"

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


def _parent(url: str) -> str:
    return url.rstrip("/").rsplit("/", 1)[0]


def _flow_url(base_url: str, correlation_id: str = "") -> str:
    return join(base_url, AUDIT_FLOW_PATH, correlation_id)


def key_value_pairs(text: str) -> dict[str, str]:
    """Parse 'env:staging,foo:bar' into a dict; malformed pairs are ignored."""
    result: dict[str, str] = {}
    if not text:
        return result
    for pair in text.split(","):
        parts = pair.split(":")
        if len(parts) == 2:
            result[parts[0].strip()] = parts[1].strip()
    return result


def _query_value(query: Mapping[str, Any], name: str) -> str:
    value = query.get(name, "")
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else ""
    return "" if value is None else str(value)


def _int_value(query: Mapping[str, Any], name: str, default: int) -> int:
    text = _query_value(query, name)
    if not text:
        return default
    if not _INT_PATTERN.fullmatch(text):
        logger.error("invalid integer for %s: %r", name, text)
        return default
    return int(text)


def flows_filter_from_query(query: Optional[Mapping[str, Any]]) -> FlowsFilter:
    """Build a filter from request query parameters."""
    query = query or {}
    return FlowsFilter(
        flow_name=_query_value(query, "flowName"),
        step_id=_query_value(query, "stepId"),
        action_name=_query_value(query, "actionName"),
        action_pack_name=_query_value(query, "actionPackName"),
        action_pack_labels=key_value_pairs(_query_value(query, "actionPackLabels")),
        skip=_int_value(query, "start", 0),
        limit=_int_value(query, "limit", DEFAULT_LIMIT),
    )


def flow_response(base_url: str, flow: Flow) -> dict[str, Any]:
    """The flow with a link to itself."""
    body = flow.to_dict()
    body["links"] = [Link(_flow_url(base_url, flow.correlation_id), "self").to_dict()]
    return body


def flows_response(base_url: str, flows: Iterable[Flow]) -> dict[str, Any]:
    """The flows, each with its own link, plus navigation links."""
    collection = _flow_url(base_url)
    return {
        "flows": [flow_response(base_url, flow) for flow in flows],
        "links": [
            Link(collection, "self").to_dict(),
            Link(_parent(_parent(collection)), "up").to_dict(),
            Link(join(base_url, AUDIT_DOC_PATH), "help").to_dict(),
        ],
    }


def get_flows(repository: Any, base_url: str, query: Optional[Mapping[str, Any]] = None) -> Response:
    """Respond with the flows matching the query parameters."""
    try:
        flows = repository.find(flows_filter_from_query(query))
    except Exception as err:  # any repository failure is a server error
        logger.error("%s", err)
        return Response(status=500)
    return json_response(flows_response(base_url, flows or []))


def get_flow(repository: Any, base_url: str, correlation_id: str) -> Response:
    """Respond with one flow execution, 404 if unknown."""
    try:
        flow = repository.get(correlation_id)
    except Exception as err:  # any repository failure is a server error
        logger.error("Error finding flow correlationId=%s: %s", correlation_id, err)
        return Response(status=500)
    if flow is None:
        logger.info("Flow correlationId=%s not found", correlation_id)
        return Response(status=404)
    return json_response(flow_response(base_url, flow))