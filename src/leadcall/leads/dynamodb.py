"""
DynamoDB lead store.

Uses the native conditional put and list_append so that create() and
append_event() are atomic on the server. boto3 is synchronous; calls run in
worker threads.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, Callable, TypeVar

import anyio
import boto3
from botocore.exceptions import BotoCoreError, ClientError

from leadcall.config import Settings
from leadcall.leads.models import Lead, LeadEvent, LeadUpdate
from leadcall.leads.repository import sort_newest_first
from leadcall.shared.exceptions import DuplicateLeadError, LeadNotFoundError, StorageError
from leadcall.shared.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_CONDITION_FAILED = "ConditionalCheckFailedException"


def to_dynamo(value: Any) -> Any:
    """DynamoDB rejects floats; round-trip through JSON parsing them as Decimal."""
    return json.loads(json.dumps(value), parse_float=Decimal)


def from_dynamo(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    return value


def build_update_expression(changes: LeadUpdate) -> dict[str, Any] | None:
    """Build a SET expression covering exactly the supplied fields.

    Returns None when there is nothing to write.
    """
    fields = changes.fields()
    if not fields:
        return None

    names: dict[str, str] = {}
    values: dict[str, Any] = {}
    parts: list[str] = []
    for key, value in fields.items():
        names[f"#{key}"] = key
        values[f":{key}"] = to_dynamo(value)
        parts.append(f"#{key} = :{key}")

    return {
        "UpdateExpression": "SET " + ", ".join(parts),
        "ExpressionAttributeNames": names,
        "ExpressionAttributeValues": values,
    }


class DynamoLeadStore:
    """LeadStore backed by a DynamoDB table keyed on leadId."""

    def __init__(self, table: Any) -> None:
        self._table = table

    @classmethod
    def from_settings(cls, settings: Settings) -> "DynamoLeadStore":
        kwargs: dict[str, Any] = {"region_name": settings.aws_region}
        if settings.dynamodb_endpoint_url:
            kwargs["endpoint_url"] = settings.dynamodb_endpoint_url
        if settings.aws_access_key_id:
            kwargs["aws_access_key_id"] = settings.aws_access_key_id
            kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
        resource = boto3.resource("dynamodb", **kwargs)
        return cls(resource.Table(settings.dynamodb_table))

    async def initialize(self) -> None:
        # Fails fast when the table is missing or credentials are wrong.
        await self._call(self._table.load)

    async def create(self, lead: Lead) -> Lead:
        try:
            await self._call(
                lambda: self._table.put_item(
                    Item=to_dynamo(lead.to_record()),
                    ConditionExpression="attribute_not_exists(leadId)",
                )
            )
        except _ConditionFailed as e:
            raise DuplicateLeadError(f"Lead {lead.lead_id} already exists") from e
        return lead

    async def update(self, lead_id: str, changes: LeadUpdate) -> Lead:
        expression = build_update_expression(changes.stamped())
        if expression is None:
            raise StorageError(f"No fields to update for lead {lead_id}")

        try:
            result = await self._call(
                lambda: self._table.update_item(
                    Key={"leadId": lead_id},
                    ConditionExpression="attribute_exists(leadId)",
                    ReturnValues="ALL_NEW",
                    **expression,
                )
            )
        except _ConditionFailed as e:
            raise LeadNotFoundError(f"Lead {lead_id} not found") from e
        return Lead.model_validate(from_dynamo(result["Attributes"]))

    async def append_event(self, lead_id: str, event: LeadEvent) -> LeadEvent:
        record = event.to_record()
        try:
            await self._call(
                lambda: self._table.update_item(
                    Key={"leadId": lead_id},
                    UpdateExpression=(
                        "SET #events = list_append(if_not_exists(#events, :emptyList), :eventVal), "
                        "#updatedAt = :updatedAt"
                    ),
                    ConditionExpression="attribute_exists(leadId)",
                    ExpressionAttributeNames={"#events": "events", "#updatedAt": "updatedAt"},
                    ExpressionAttributeValues={
                        ":eventVal": [to_dynamo(record)],
                        ":emptyList": [],
                        ":updatedAt": record["receivedAt"],
                    },
                )
            )
        except _ConditionFailed as e:
            raise LeadNotFoundError(f"Lead {lead_id} not found") from e
        return event

    async def list_leads(self) -> list[Lead]:
        def _scan() -> list[dict[str, Any]]:
            items: list[dict[str, Any]] = []
            kwargs: dict[str, Any] = {}
            while True:
                page = self._table.scan(**kwargs)
                items.extend(page.get("Items", []))
                last_key = page.get("LastEvaluatedKey")
                if not last_key:
                    return items
                kwargs["ExclusiveStartKey"] = last_key

        items = await self._call(_scan)
        return sort_newest_first([Lead.model_validate(from_dynamo(item)) for item in items])

    async def get_by_id(self, lead_id: str) -> Lead | None:
        result = await self._call(lambda: self._table.get_item(Key={"leadId": lead_id}))
        item = result.get("Item")
        return Lead.model_validate(from_dynamo(item)) if item else None

    async def _call(self, fn: Callable[[], T]) -> T:
        def _guarded() -> T:
            try:
                return fn()
            except ClientError as e:
                code = e.response.get("Error", {}).get("Code", "Unknown")
                if code == _CONDITION_FAILED:
                    raise _ConditionFailed(code) from e
                logger.error(
                    "DynamoDB request failed",
                    extra={"table": self._table.name, "error_code": code, "error": str(e)},
                )
                raise StorageError(f"DynamoDB error: {code}", details={"error_code": code}) from e
            except BotoCoreError as e:
                logger.error("DynamoDB client error", extra={"table": self._table.name, "error": str(e)})
                raise StorageError(f"DynamoDB client error: {e}") from e

        return await anyio.to_thread.run_sync(_guarded)


class _ConditionFailed(Exception):
    """Internal signal for a failed ConditionExpression."""
