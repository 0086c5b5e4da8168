"""Finding flow executions in the audit store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional

from .audit_model import Action, Flow

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


@dataclass
class FlowsFilter:
    """Criteria for finding flow executions, with paging."""

    flow_name: str = ""
    step_id: str = ""
    action_name: str = ""
    action_pack_name: str = ""
    action_pack_labels: dict[str, str] = field(default_factory=dict)
    skip: int = 0
    limit: int = DEFAULT_LIMIT

    def to_query(self) -> dict[str, Any]:
        """The document query that selects matching actions."""
        query: dict[str, Any] = {}
        if self.flow_name:
            query["flowName"] = self.flow_name
        if self.step_id:
            query["stepId"] = self.step_id
        if self.action_name:
            query["name"] = self.action_name
        if self.action_pack_name:
            query["packName"] = self.action_pack_name
        for key, value in (self.action_pack_labels or {}).items():
            query[f"packLabels.{key}"] = value
        return query


def group_actions_into_flows(
    actions: Iterable[Action], get_flow: Callable[[str], Flow]
) -> dict[str, Flow]:
    """Group actions by correlation id under the flow definition each belongs to.

    Actions whose flow definition cannot be loaded are left out.
    """
    flows: dict[str, Flow] = {}
    for action in actions:
        if action.correlation_id not in flows:
            try:
                flow = get_flow(action.flow_uuid)
            except Exception as err:  # any failure to load the definition drops the action
                logger.error("%s", err)
                continue
            flow.actions = {}
            flow.correlation_id = action.correlation_id
            flows[action.correlation_id] = flow
        flows[action.correlation_id].actions[action.step_id] = action
    return flows


def sort_flows(correlation_ids: Iterable[str], flows: Mapping[str, Flow]) -> list[Flow]:
    """The flows in the order of correlation_ids, skipping ids with no flow."""
    return [flows[correlation_id] for correlation_id in correlation_ids if correlation_id in flows]


class MongoFlowRepository:
    """Flow executions read from a document store with a MongoDB-style collection API."""

    def __init__(self, audit_collection: Any, history_collection: Any) -> None:
        self._audit = audit_collection
        self._history = history_collection

    def find(self, flows_filter: FlowsFilter) -> list[Flow]:
        """Flows matching the filter, most recently active first."""
        ids = self.find_correlation_ids(flows_filter)
        actions = self.find_actions(ids)
        return sort_flows(ids, group_actions_into_flows(actions, self.get_flow))

    def get(self, correlation_id: str) -> Optional[Flow]:
        """The flow execution with this correlation id, or None."""
        actions = self.find_actions([correlation_id])
        return group_actions_into_flows(actions, self.get_flow).get(correlation_id)

    def find_correlation_ids(self, flows_filter: FlowsFilter) -> list[str]:
        """Distinct correlation ids of matching actions, latest state time first."""
        pipeline = [
            {"$match": flows_filter.to_query()},
            {"$group": {"_id": "$correlationId", "time": {"$max": "$state.time"}}},
            {"$sort": {"time": -1}},
            {"$skip": flows_filter.skip},
            {"$limit": flows_filter.limit},
        ]
        return [str(document["_id"]) for document in self._audit.aggregate(pipeline)]

    def find_actions(self, correlation_ids: Iterable[str]) -> list[Action]:
        """All actions belonging to any of the correlation ids."""
        query = {"correlationId": {"$in": list(correlation_ids)}}
        return [Action.from_dict(document) for document in self._audit.find(query)]

    def get_flow(self, uuid: str) -> Flow:
        """The flow definition with this uuid; raises LookupError if there is none."""
        document = self._history.find_one({"uuid": uuid})
        if document is None:
            raise LookupError("not found")
        return Flow.from_dict(document)