"""Tests for resource queries end to end over mocked HTTP."""

import httpx
import pytest
import respx

from clinic_query import ClinicApiClient, ClinicResources, DataLayer, FetchStatus

BASE_URL = "https://clinic.test/api"


@pytest.fixture
async def resources(layer: DataLayer):
    """Create ClinicResources over a mocked API."""
    api = ClinicApiClient(BASE_URL)
    yield ClinicResources(layer, api)
    await api.aclose()


class TestResources:
    """Tests for named resource queries."""

    @respx.mock
    async def test_patient_is_cached(self, resources: ClinicResources) -> None:
        route = respx.get(f"{BASE_URL}/patients/7").mock(
            return_value=httpx.Response(200, json={"id": 7, "firstName": "Ann"})
        )
        first = resources.patient(7)
        await first.start()
        second = resources.patient(7)
        await second.start()
        assert route.call_count == 1
        assert second.data == {"id": 7, "firstName": "Ann"}
        assert first.key == "patient:7"

    @respx.mock
    async def test_appointments_by_month(self, resources: ClinicResources) -> None:
        respx.get(f"{BASE_URL}/appointments/month/2024/5").mock(
            return_value=httpx.Response(200, json=[{"id": 1}])
        )
        query = resources.appointments_by_month(2024, 5)
        await query.start()
        assert query.data == [{"id": 1}]
        assert query.key == "appointments:month:2024-5"

    @respx.mock
    async def test_error_is_surfaced(self, resources: ClinicResources) -> None:
        respx.get(f"{BASE_URL}/dashboard/stats").mock(
            return_value=httpx.Response(503, json={"error": "Maintenance"})
        )
        query = resources.dashboard_stats()
        await query.start()
        assert query.state.status is FetchStatus.ERROR
        assert query.error.message == "Maintenance"
        assert query.error.status_code == 503

    @respx.mock
    async def test_patients_page(self, resources: ClinicResources, page_payload) -> None:
        route = respx.get(f"{BASE_URL}/patients").mock(
            return_value=httpx.Response(200, json=page_payload([{"id": 1}]))
        )
        query = resources.patients_page()
        await query.start()
        assert query.data.content == [{"id": 1}]
        assert route.calls[0].request.url.params["sortBy"] == "firstName"

    @respx.mock
    async def test_medicines_page_sorted_by_name(
        self, resources: ClinicResources, page_payload
    ) -> None:
        route = respx.get(f"{BASE_URL}/medicines").mock(
            return_value=httpx.Response(200, json=page_payload([]))
        )
        query = resources.medicines_page()
        await query.start()
        assert query.data.empty
        assert route.calls[0].request.url.params["sortBy"] == "name"

    async def test_keys_nest_under_resource(self, resources: ClinicResources) -> None:
        assert resources.appointments_by_patient(3).key == "appointments:patient:3"
        assert resources.prescriptions_by_patient(3).key == "prescriptions:patient:3"
        assert resources.treatments_by_patient(3).key == "treatments:patient:3"
        assert resources.amounts_by_patient(3).key == "amounts:patient:3"
