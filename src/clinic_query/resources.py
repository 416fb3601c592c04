"""Named queries for each clinic resource.

Each method binds one API endpoint and one cache key to the data layer.
Keys nest with ``:`` so ``layer.clear_cache("patient")`` drops every
cached patient.
"""

from __future__ import annotations

from typing import Any

from clinic_query.api import ClinicApiClient
from clinic_query.cancellation import CancellationToken
from clinic_query.layer import DataLayer
from clinic_query.query import PaginatedQuery, Query
from clinic_query.types import QueryParams


class ClinicResources:
    """Query factories for the clinic API."""

    def __init__(self, layer: DataLayer, api: ClinicApiClient) -> None:
        self._layer = layer
        self._api = api

    def _query(self, key: str, path: str) -> Query[Any]:
        async def fetch(token: CancellationToken) -> Any:
            return await self._api.get(path, cancellation=token)

        return self._layer.query(key, fetch)

    def _paginated(self, base_key: str, path: str, sort_by: str) -> PaginatedQuery[Any]:
        async def fetch(params: QueryParams, token: CancellationToken) -> Any:
            return await self._api.get_page(path, params, cancellation=token)

        return self._layer.paginated(base_key, fetch, sort_by=sort_by)

    # Users and roles

    def users(self) -> Query[Any]:
        return self._query("users", "/users")

    def dentists(self) -> Query[Any]:
        return self._query("dentists", "/users/dentists")

    def user(self, id: int) -> Query[Any]:
        return self._query(f"user:{id}", f"/users/{id}")

    def roles(self) -> Query[Any]:
        return self._query("roles", "/roles")

    def role(self, id: int) -> Query[Any]:
        return self._query(f"role:{id}", f"/roles/{id}")

    # Patients

    def patients(self) -> Query[Any]:
        return self._query("patients:all", "/patients/all")

    def patients_page(self) -> PaginatedQuery[Any]:
        return self._paginated("patients", "/patients", sort_by="firstName")

    def patient(self, id: int) -> Query[Any]:
        return self._query(f"patient:{id}", f"/patients/{id}")

    # Appointments

    def appointments(self) -> Query[Any]:
        return self._query("appointments:all", "/appointments")

    def appointments_by_date(self, date: str) -> Query[Any]:
        return self._query(f"appointments:date:{date}", f"/appointments/date/{date}")

    def appointments_by_month(self, year: int, month: int) -> Query[Any]:
        return self._query(
            f"appointments:month:{year}-{month}",
            f"/appointments/month/{year}/{month}",
        )

    def appointments_by_week(self, date: str) -> Query[Any]:
        return self._query(f"appointments:week:{date}", f"/appointments/week/{date}")

    def appointments_by_patient(self, patient_id: int) -> Query[Any]:
        return self._query(
            f"appointments:patient:{patient_id}",
            f"/appointments/patient/{patient_id}",
        )

    # Medicines and prescriptions

    def medicines(self) -> Query[Any]:
        return self._query("medicines:all", "/medicines/all")

    def medicines_page(self) -> PaginatedQuery[Any]:
        return self._paginated("medicines", "/medicines", sort_by="name")

    def medicine(self, id: int) -> Query[Any]:
        return self._query(f"medicine:{id}", f"/medicines/{id}")

    def prescriptions(self) -> Query[Any]:
        return self._query("prescriptions:all", "/prescriptions")

    def prescription(self, id: int) -> Query[Any]:
        return self._query(f"prescription:{id}", f"/prescriptions/{id}")

    def prescriptions_by_patient(self, patient_id: int) -> Query[Any]:
        return self._query(
            f"prescriptions:patient:{patient_id}",
            f"/prescriptions/patient/{patient_id}",
        )

    # Treatments and billing

    def treatments(self) -> Query[Any]:
        return self._query("treatments:all", "/treatments")

    def treatment(self, id: int) -> Query[Any]:
        return self._query(f"treatment:{id}", f"/treatments/{id}")

    def treatments_by_patient(self, patient_id: int) -> Query[Any]:
        return self._query(
            f"treatments:patient:{patient_id}",
            f"/treatments/patient/{patient_id}",
        )

    def amounts(self) -> Query[Any]:
        return self._query("amounts:all", "/amounts")

    def amount(self, id: int) -> Query[Any]:
        return self._query(f"amount:{id}", f"/amounts/{id}")

    def amounts_by_patient(self, patient_id: int) -> Query[Any]:
        return self._query(
            f"amounts:patient:{patient_id}",
            f"/amounts/patient/{patient_id}",
        )

    # Dashboard

    def dashboard_stats(self) -> Query[Any]:
        return self._query("dashboard:stats", "/dashboard/stats")
