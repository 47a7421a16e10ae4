"""
Unit tests for the request trigger: event filtering, request coordinate
validation, error mapping, and the hand-off to matching and dispatch.
"""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from rigsnap.models.notification import DeliveryStatus, NotificationChannel
from rigsnap.services.geoService import Coordinates
from rigsnap.services.notificationService import DispatchSummary, NotificationOutcome
from rigsnap.services.triggerService import (
    TriggerError,
    handle_insert_event,
    parse_request_coordinates,
    process_request_record,
    request_from_record,
)

TRUCKER_ID = uuid.UUID("aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa")


def _record(**overrides) -> dict:
    record = {
        "id": "req-42",
        "trucker_id": str(TRUCKER_ID),
        "coordinates": {"latitude": 30.0, "longitude": 70.0},
        "service_type": "towing",
        "urgency": "high",
        "description": "Broken axle",
        "location": "N-5 near Okara",
        "estimated_cost": 200.0,
    }
    record.update(overrides)
    return record


def _payload(**overrides) -> dict:
    payload = {
        "type": "INSERT",
        "table": "requests",
        "schema": "public",
        "record": _record(),
        "old_record": None,
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# parse_request_coordinates
# ---------------------------------------------------------------------------


class TestParseRequestCoordinates:

    def test_mapping(self):
        assert parse_request_coordinates({"latitude": 30.0, "longitude": 70.0}) == Coordinates(30.0, 70.0)

    def test_json_text(self):
        assert parse_request_coordinates('{"latitude": 0, "longitude": 0}') == Coordinates(0.0, 0.0)

    def test_invalid_json(self):
        with pytest.raises(TriggerError) as exc_info:
            parse_request_coordinates("30.0,70.0")
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Invalid coordinates format"

    @pytest.mark.parametrize(
        "raw",
        [None, {}, {"latitude": 30.0}, {"latitude": "30", "longitude": "70"}, "[30, 70]"],
    )
    def test_missing_coordinates(self, raw):
        with pytest.raises(TriggerError) as exc_info:
            parse_request_coordinates(raw)
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Missing coordinates"

    def test_overflowing_number_is_missing(self):
        with pytest.raises(TriggerError) as exc_info:
            parse_request_coordinates({"latitude": 10**400, "longitude": 70.0})
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Missing coordinates"

    def test_overflowing_json_text_is_missing(self):
        raw = '{"latitude": 1' + "0" * 400 + ', "longitude": 70.0}'
        with pytest.raises(TriggerError) as exc_info:
            parse_request_coordinates(raw)
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Missing coordinates"

    def test_deeply_nested_json_is_invalid(self):
        with pytest.raises(TriggerError) as exc_info:
            parse_request_coordinates("[" * 100_000 + "]" * 100_000)
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Invalid coordinates format"


class TestRequestFromRecord:

    def test_maps_fields(self):
        request = request_from_record(_record())

        assert request.id == "req-42"
        assert request.requester_id == str(TRUCKER_ID)
        assert request.service_type == "towing"
        assert request.budget == 200.0

    def test_customer_id_and_budget_aliases(self):
        record = _record(customer_id="cust-1", budget=75, estimated_cost=None)
        del record["trucker_id"]

        request = request_from_record(record)

        assert request.requester_id == "cust-1"
        assert request.budget == 75


# ---------------------------------------------------------------------------
# handle_insert_event
# ---------------------------------------------------------------------------


class TestHandleInsertEvent:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [{"type": "UPDATE"}, {"type": "DELETE"}, {"table": "users"}],
    )
    async def test_ignores_other_events(self, mock_db, overrides):
        with patch("rigsnap.services.triggerService.providerService") as mock_providers:
            result = await handle_insert_event(mock_db, _payload(**overrides), NotificationChannel.PUSH)

        assert result.message == "Not a request insert operation"
        assert result.providers_notified == 0
        mock_providers.list_providers_for_channel.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_record(self, mock_db):
        with pytest.raises(TriggerError) as exc_info:
            await handle_insert_event(mock_db, _payload(record=None), NotificationChannel.PUSH)
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_bad_coordinates_abort_before_provider_lookup(self, mock_db):
        payload = _payload(record=_record(coordinates="not json"))
        with patch(
            "rigsnap.services.triggerService.providerService.list_providers_for_channel",
            new_callable=AsyncMock,
        ) as mock_list:
            with pytest.raises(TriggerError) as exc_info:
                await handle_insert_event(mock_db, payload, NotificationChannel.PUSH)

        assert exc_info.value.message == "Invalid coordinates format"
        mock_list.assert_not_awaited()


# ---------------------------------------------------------------------------
# process_request_record
# ---------------------------------------------------------------------------


class TestProcessRequestRecord:

    @pytest.mark.asyncio
    async def test_provider_query_failure(self, mock_db):
        with patch(
            "rigsnap.services.triggerService.providerService.list_providers_for_channel",
            new_callable=AsyncMock,
            side_effect=OperationalError("SELECT", {}, Exception("db down")),
        ):
            with pytest.raises(TriggerError) as exc_info:
                await process_request_record(mock_db, _record(), NotificationChannel.PUSH)

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Failed to fetch providers"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "channel, message",
        [
            (NotificationChannel.PUSH, "No providers with push tokens found"),
            (NotificationChannel.EMAIL, "No providers with email addresses found"),
        ],
    )
    async def test_no_providers(self, mock_db, channel, message):
        requester = MagicMock(name="requester")
        requester.name = "Usman"
        with patch(
            "rigsnap.services.triggerService.providerService.list_providers_for_channel",
            new_callable=AsyncMock,
            return_value=[],
        ), patch(
            "rigsnap.services.triggerService.providerService.get_user",
            new_callable=AsyncMock,
            return_value=requester,
        ):
            result = await process_request_record(mock_db, _record(), channel)

        assert result.message == message
        assert result.total_providers == 0

    @pytest.mark.asyncio
    async def test_dispatches_and_clears_invalid_tokens(self, mock_db, provider_factory):
        providers = [
            provider_factory(location="30.0,70.0", services=["towing"]),
            provider_factory(location="30.0,70.0", services=["towing"]),
        ]
        summary = DispatchSummary(
            channel=NotificationChannel.PUSH,
            sent=1,
            total=2,
            outcomes=[
                NotificationOutcome(providers[0].id, NotificationChannel.PUSH, DeliveryStatus.SENT, 0.0),
                NotificationOutcome(
                    providers[1].id,
                    NotificationChannel.PUSH,
                    DeliveryStatus.FAILED,
                    0.0,
                    error="DeviceNotRegistered",
                    invalid_token=True,
                ),
            ],
            invalid_tokens=["ExponentPushToken[gone]"],
        )
        with patch(
            "rigsnap.services.triggerService.providerService.list_providers_for_channel",
            new_callable=AsyncMock,
            return_value=providers,
        ), patch(
            "rigsnap.services.triggerService.notificationService.dispatch",
            new_callable=AsyncMock,
            return_value=summary,
        ) as mock_dispatch, patch(
            "rigsnap.services.triggerService.providerService.clear_push_tokens",
            new_callable=AsyncMock,
        ) as mock_clear:
            result = await process_request_record(mock_db, _record(), NotificationChannel.PUSH)

        assert result.message == "Processed request req-42"
        assert result.providers_notified == 1
        assert result.total_providers == 2
        eligible = mock_dispatch.await_args.args[0]
        assert len(eligible) == 2
        mock_clear.assert_awaited_once_with(mock_db, ["ExponentPushToken[gone]"])

    @pytest.mark.asyncio
    async def test_email_requires_requester(self, mock_db):
        with patch(
            "rigsnap.services.triggerService.providerService.get_user",
            new_callable=AsyncMock,
            return_value=None,
        ):
            with pytest.raises(TriggerError) as exc_info:
                await process_request_record(mock_db, _record(), NotificationChannel.EMAIL)

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Failed to fetch customer information"

    @pytest.mark.asyncio
    async def test_email_passes_requester_name(self, mock_db, provider_factory):
        requester = MagicMock()
        requester.name = "Usman Khan"
        with patch(
            "rigsnap.services.triggerService.providerService.get_user",
            new_callable=AsyncMock,
            return_value=requester,
        ), patch(
            "rigsnap.services.triggerService.providerService.list_providers_for_channel",
            new_callable=AsyncMock,
            return_value=[provider_factory(location="30.0,70.0", services=["heavy_towing"])],
        ), patch(
            "rigsnap.services.triggerService.notificationService.dispatch",
            new_callable=AsyncMock,
            return_value=DispatchSummary(channel=NotificationChannel.EMAIL, sent=1, total=1),
        ) as mock_dispatch:
            result = await process_request_record(mock_db, _record(), NotificationChannel.EMAIL)

        assert result.providers_notified == 1
        assert mock_dispatch.await_args.kwargs["requester_name"] == "Usman Khan"
        # email matching is substring based, so "heavy_towing" covers "towing"
        assert len(mock_dispatch.await_args.args[0]) == 1
