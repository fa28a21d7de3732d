"""
SConboard — Form Session Tests
===============================

What:  Tests for the FormSession workflow end to end.
How:   Fake location providers and geocoders, a PreviewRegistry per session,
       httpx.MockTransport for the submission API. MIME sniffing is patched.

What we test:
    ✅ Empty submit → nine errors; complete form → success and reset
    ✅ Location flow success / failure / unsupported / re-entrancy rejection
    ✅ Auto-fill: gap filling, failure notice, busy rejection, no coordinates
    ✅ Preview references released on remove, reset and close
    ✅ Submission API failure keeps the data
    ✅ Submit during an in-flight fix or lookup: guard holds, late result dropped
"""

import asyncio
from unittest.mock import patch

import httpx
import pytest

from sconboard.exceptions import EnrichmentBusyError, EnrichmentError, LocationBusyError
from sconboard.schemas.form import Category
from sconboard.schemas.location import Coordinates, ResolvedAddress
from sconboard.services.form_service import COORDINATES_FIRST_MESSAGE, FormSession
from sconboard.services.location_base import FixedLocationProvider, LocationProvider, PositionError
from sconboard.services.preview_service import PreviewRegistry
from sconboard.services.submission_service import ServiceCenterClient
from sconboard.state.form_state import FlowStatus

from tests.conftest import StubGeocoder

DETECT = "sconboard.services.image_service.detect_mime_type"


class GatedProvider(LocationProvider):
    """Holds the request open until the test sets `gate`."""

    def __init__(self, coordinates: Coordinates):
        self.coordinates = coordinates
        self.gate = asyncio.Event()
        self.calls = 0

    async def get_current_position(self, options):
        self.calls += 1
        await self.gate.wait()
        return self.coordinates


class GatedGeocoder(StubGeocoder):
    def __init__(self, address: ResolvedAddress):
        super().__init__(address)
        self.gate = asyncio.Event()

    async def reverse(self, latitude, longitude):
        await self.gate.wait()
        return await super().reverse(latitude, longitude)


class TestSubmit:

    @pytest.mark.asyncio
    async def test_empty_form_reports_nine_errors(self):
        session = FormSession()
        result = await session.submit()

        assert result.ok is False
        assert set(result.errors) == {
            "center_name", "phone", "email", "city", "state",
            "zip_code", "location", "categories", "images",
        }
        assert session.state.errors == result.errors

    @pytest.mark.asyncio
    async def test_complete_form_succeeds(self, filled_session):
        await filled_session.use_my_location()

        result = await filled_session.submit()

        assert result.ok is True
        assert result.errors == {}
        assert result.record.center_name == "A1 Auto Repairs"
        assert result.record.latitude == "18.520430"

    @pytest.mark.asyncio
    async def test_failed_submit_keeps_data(self, filled_session):
        result = await filled_session.submit()

        assert result.ok is False
        assert result.errors == {"location": "Please fetch your location coordinates"}
        assert filled_session.state.record.center_name == "A1 Auto Repairs"
        assert len(filled_session.state.record.images) == 1

    @pytest.mark.asyncio
    async def test_success_resets_form_and_releases_previews(self, filled_session):
        await filled_session.use_my_location()
        assert filled_session.previews.live_count == 1

        await filled_session.submit()

        assert filled_session.state.record.center_name == ""
        assert filled_session.state.previews == ()
        assert filled_session.previews.live_count == 0

    @pytest.mark.asyncio
    async def test_submits_through_client(self, filled_session):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(201, json={"id": "sc-1", "message": "Service center created"})

        filled_session.submitter = ServiceCenterClient(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        await filled_session.use_my_location()

        result = await filled_session.submit()

        assert result.ok is True
        assert result.response.id == "sc-1"
        assert result.message == "Service center created"
        assert len(captured) == 1

    @pytest.mark.asyncio
    async def test_api_failure_keeps_data_and_sets_notice(self, filled_session):
        handler = lambda r: httpx.Response(500, json={"message": "Database unavailable"})
        filled_session.submitter = ServiceCenterClient(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        await filled_session.use_my_location()

        result = await filled_session.submit()

        assert result.ok is False
        assert result.errors == {}
        assert filled_session.state.record.center_name == "A1 Auto Repairs"
        assert filled_session.previews.live_count == 1
        assert filled_session.take_notice() == "Database unavailable"
        assert filled_session.take_notice() is None

    @pytest.mark.asyncio
    async def test_redirect_keeps_data(self, filled_session):
        handler = lambda r: httpx.Response(302, headers={"Location": "https://sso.example.in/login"})
        filled_session.submitter = ServiceCenterClient(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        await filled_session.use_my_location()

        result = await filled_session.submit()

        assert result.ok is False
        assert filled_session.state.record.center_name == "A1 Auto Repairs"
        assert filled_session.previews.live_count == 1
        assert "HTTP 302" in filled_session.take_notice()

    @pytest.mark.asyncio
    async def test_invalid_form_never_reaches_client(self):
        def handler(request):
            raise AssertionError("should not be called")

        session = FormSession(
            submitter=ServiceCenterClient(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        )
        result = await session.submit()
        assert result.ok is False


class TestFieldOperations:

    @pytest.mark.asyncio
    async def test_edit_after_submit_clears_only_that_error(self):
        session = FormSession()
        await session.submit()

        session.edit_field("email", "contact@a1auto.in")

        assert "email" not in session.state.errors
        assert len(session.state.errors) == 8

    def test_toggle_category_accepts_enum_and_text(self):
        session = FormSession()
        session.toggle_category(Category.AC)
        session.toggle_category("Electrician")
        session.toggle_category("AC")
        assert session.state.record.categories == (Category.ELECTRICIAN,)


class TestLocationFlow:

    @pytest.mark.asyncio
    async def test_success(self, pune):
        session = FormSession(location_provider=FixedLocationProvider(pune))
        state = await session.use_my_location()
        assert (state.record.latitude, state.record.longitude) == ("18.520430", "73.856744")
        assert state.location_status is FlowStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_second_fix_overwrites_first(self, pune):
        provider = FixedLocationProvider(pune)
        session = FormSession(location_provider=provider)
        await session.use_my_location()

        provider.coordinates = Coordinates(latitude=12.971599, longitude=77.594563)
        state = await session.use_my_location()

        assert (state.record.latitude, state.record.longitude) == ("12.971599", "77.594563")
        assert provider.calls == 2

    @pytest.mark.asyncio
    async def test_unsupported(self):
        state = await FormSession().use_my_location()
        assert state.errors["location"] == "Geolocation not supported"
        assert state.location_status is FlowStatus.FAILED
        assert not state.is_locating

    @pytest.mark.asyncio
    async def test_denied(self):
        session = FormSession(location_provider=FixedLocationProvider(error_code=PositionError.PERMISSION_DENIED))
        state = await session.use_my_location()
        assert "permission denied" in state.errors["location"]
        assert state.record.latitude == ""

    @pytest.mark.asyncio
    async def test_retry_after_failure_clears_error(self, pune):
        provider = FixedLocationProvider(error_code=PositionError.TIMEOUT)
        session = FormSession(location_provider=provider)
        await session.use_my_location()
        assert "location" in session.state.errors

        provider.error_code = None
        provider.coordinates = pune
        state = await session.use_my_location()
        assert "location" not in state.errors

    @pytest.mark.asyncio
    async def test_second_trigger_while_in_flight_is_rejected(self, pune):
        provider = GatedProvider(pune)
        session = FormSession(location_provider=provider)

        first = asyncio.create_task(session.use_my_location())
        await asyncio.sleep(0)
        assert session.state.is_locating
        snapshot = session.state

        with pytest.raises(LocationBusyError):
            await session.use_my_location()
        assert session.state == snapshot

        provider.gate.set()
        state = await first
        assert state.record.latitude == "18.520430"
        assert provider.calls == 1


class TestSubmitDuringFlows:

    @pytest.mark.asyncio
    async def test_submit_while_locating_keeps_guard(self, filled_session, pune):
        await filled_session.use_my_location()
        provider = GatedProvider(pune)
        filled_session.location_provider = provider
        pending = asyncio.create_task(filled_session.use_my_location())
        await asyncio.sleep(0)

        result = await filled_session.submit()

        assert result.ok is True
        assert filled_session.state.is_locating
        with pytest.raises(LocationBusyError):
            await filled_session.use_my_location()
        assert provider.calls == 1

        provider.gate.set()
        state = await pending
        assert not state.record.has_location
        assert not state.is_locating
        assert state.errors == {}

    @pytest.mark.asyncio
    async def test_late_fix_after_submit_is_dropped_then_next_fix_applies(self, filled_session, pune):
        await filled_session.use_my_location()
        provider = GatedProvider(pune)
        filled_session.location_provider = provider
        pending = asyncio.create_task(filled_session.use_my_location())
        await asyncio.sleep(0)
        await filled_session.submit()

        provider.gate.set()
        await pending
        state = await filled_session.use_my_location()

        assert state.record.latitude == "18.520430"
        assert provider.calls == 2

    @pytest.mark.asyncio
    async def test_late_autofill_after_submit_is_dropped(self, filled_session):
        geocoder = GatedGeocoder(ResolvedAddress(city="Mumbai", state="Maharashtra", postcode="400001"))
        filled_session.geocoder = geocoder
        await filled_session.use_my_location()
        pending = asyncio.create_task(filled_session.autofill_address())
        await asyncio.sleep(0)

        result = await filled_session.submit()
        assert result.ok is True
        assert filled_session.state.is_fetching_address

        geocoder.gate.set()
        state = await pending
        assert state.record.city == ""
        assert state.record.zip_code == ""
        assert not state.is_fetching_address


class TestAutofillFlow:

    @pytest.mark.asyncio
    async def test_requires_coordinates(self, stub_geocoder):
        session = FormSession(geocoder=stub_geocoder)
        state = await session.autofill_address()
        assert state.notice == COORDINATES_FIRST_MESSAGE
        assert stub_geocoder.calls == []

    @pytest.mark.asyncio
    async def test_fills_gaps_only(self, pune):
        geocoder = StubGeocoder(ResolvedAddress(city="Mumbai", state="Maharashtra", postcode="400001"))
        session = FormSession(location_provider=FixedLocationProvider(pune), geocoder=geocoder)
        session.edit_field("city", "Pune")
        await session.use_my_location()

        state = await session.autofill_address()

        assert state.record.city == "Pune"
        assert state.record.state == "Maharashtra"
        assert state.record.zip_code == "400001"
        assert state.record.country == "India"
        assert geocoder.calls == [("18.520430", "73.856744")]

    @pytest.mark.asyncio
    async def test_failure_leaves_record_and_form_usable(self, pune):
        geocoder = StubGeocoder(error=EnrichmentError())
        session = FormSession(location_provider=FixedLocationProvider(pune), geocoder=geocoder)
        await session.use_my_location()
        before = session.state.record

        state = await session.autofill_address()

        assert state.record == before
        assert session.take_notice() == "Failed to fetch address details. Please enter manually."
        session.edit_field("city", "Pune")
        assert session.state.record.city == "Pune"

    @pytest.mark.asyncio
    async def test_second_autofill_while_in_flight_is_rejected(self, pune):
        geocoder = GatedGeocoder(ResolvedAddress(city="Pune"))
        session = FormSession(location_provider=FixedLocationProvider(pune), geocoder=geocoder)
        await session.use_my_location()

        first = asyncio.create_task(session.autofill_address())
        await asyncio.sleep(0)
        assert session.state.is_fetching_address

        with pytest.raises(EnrichmentBusyError):
            await session.autofill_address()

        geocoder.gate.set()
        state = await first
        assert state.record.city == "Pune"
        assert len(geocoder.calls) == 1


class TestImagesAndPreviews:

    @pytest.mark.asyncio
    async def test_add_images_from_disk(self, image_paths):
        session = FormSession(previews=PreviewRegistry())
        with patch(DETECT, return_value="image/jpeg"):
            state = await session.add_images(image_paths)

        assert [i.filename for i in state.record.images] == ["front.jpg", "workshop.jpg"]
        assert len(state.previews) == 2
        assert all(session.previews.is_live(ref) for ref in state.previews)

    @pytest.mark.asyncio
    async def test_rejected_selection_records_error(self, image_paths, tmp_path):
        gif = tmp_path / "logo.gif"
        gif.write_bytes(b"GIF89a")
        session = FormSession()

        with patch(DETECT, return_value="image/jpeg"):
            state = await session.add_images([image_paths[0], gif])

        assert state.record.images == ()
        assert "not supported" in state.errors["images"]
        assert session.previews.live_count == 0

    def test_remove_releases_exactly_that_preview(self, make_image):
        session = FormSession()
        session.attach_images([make_image("a.jpg"), make_image("b.jpg"), make_image("c.jpg")])
        refs = session.state.previews
        kept_ids = [session.state.record.images[i].image_id for i in (0, 2)]

        session.remove_image(1)

        assert not session.previews.is_live(refs[1])
        assert session.previews.is_live(refs[0]) and session.previews.is_live(refs[2])
        assert [i.image_id for i in session.state.record.images] == kept_ids
        assert session.state.previews == (refs[0], refs[2])

    def test_remove_out_of_range_releases_nothing(self, make_image):
        session = FormSession()
        session.attach_images([make_image()])
        with pytest.raises(IndexError):
            session.remove_image(3)
        assert session.previews.live_count == 1

    def test_add_remove_cycles_do_not_leak(self, make_image):
        session = FormSession()
        for _ in range(25):
            session.attach_images([make_image(), make_image()])
            session.remove_image(0)
        assert session.previews.live_count == len(session.state.previews) == 25

        session.close()
        assert session.previews.live_count == 0

    def test_context_manager_closes(self, make_image):
        registry = PreviewRegistry()
        with FormSession(previews=registry) as session:
            session.attach_images([make_image()])
            assert registry.live_count == 1
        assert registry.live_count == 0
        session.close()

    def test_reset_releases_previews(self, make_image):
        session = FormSession()
        session.attach_images([make_image(), make_image()])
        session.reset()
        assert session.previews.live_count == 0
        assert session.state.record.images == ()
