# SPDX-License-Identifier: Apache-2.0

"""
License application service.

Coordinates the pure lifecycle functions with the document store: every
operation is a single-document read-modify-write guarded by the stored
version, and license issuance retries number generation on a uniqueness
collision.
"""

import os
import random
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Type, TypeVar, Union

from opentelemetry import trace
from pydantic import BaseModel, ValidationError

from domain import access, lifecycle, testing
from domain.errors import (
    ConflictException, DuplicateKeyException, NotFoundException, ValidationException
)
from domain.policies import initial_fees, initial_tests
from models.entities import LicenseApplication, UserContext
from models.enums import ApplicationStatus, LicenseTestKind, LicenseTestResult, PaymentStatus
from models.requests import (
    AddAdminNoteRequest,
    LicenseApplicationFilters,
    PaginationParams,
    RecordTestResultRequest,
    ScheduleTestRequest,
    SubmitLicenseApplicationRequest,
    UpdateLicenseApplicationRequest
)
from models.responses import LicenseStatsResponse, PassCounts
from .mongodb import LICENSE_APPLICATIONS, MongoDBService, PaginationResult

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

LICENSE_NUMBER_KEY = "licenseDetails.licenseNumber"
DEFAULT_LICENSE_NUMBER_ATTEMPTS = 5

M = TypeVar('M', bound=BaseModel)


def _parse(model: Type[M], payload: Union[M, Dict[str, Any], None]) -> M:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload or {})
    except ValidationError as e:
        raise ValidationException.from_pydantic(e)


class LicenseApplicationService:
    """Engine operations over persisted license applications."""

    def __init__(
        self,
        mongodb_service: MongoDBService,
        max_license_number_attempts: Optional[int] = None,
        rng: Optional[random.Random] = None
    ):
        self.mongodb_service = mongodb_service
        self.max_license_number_attempts = max_license_number_attempts or int(
            os.getenv('LICENSE_NUMBER_MAX_ATTEMPTS', str(DEFAULT_LICENSE_NUMBER_ATTEMPTS))
        )
        self.rng = rng or random.SystemRandom()

    # Persistence helpers

    def _load(self, application_id: str) -> LicenseApplication:
        with tracer.start_as_current_span("db.license_application.find_one") as span:
            span.set_attributes({
                "db.collection": LICENSE_APPLICATIONS,
                "license_application.id": application_id
            })
            document = self.mongodb_service.find_one(LICENSE_APPLICATIONS, application_id)

        if not document:
            raise NotFoundException("License application not found")
        return LicenseApplication.from_document(document)

    def _save(self, original: LicenseApplication, updated: LicenseApplication) -> LicenseApplication:
        with tracer.start_as_current_span("db.license_application.replace") as span:
            span.set_attributes({
                "db.collection": LICENSE_APPLICATIONS,
                "license_application.id": original.id,
                "license_application.version": original.version
            })
            written = self.mongodb_service.replace_versioned(
                LICENSE_APPLICATIONS, original.id, updated.to_document(), original.version
            )

        if not written:
            raise ConflictException(
                "License application was modified concurrently; reload and retry",
                field="version"
            )
        updated.version = original.version + 1
        return updated

    # Operations

    def submit(self, payload: Union[SubmitLicenseApplicationRequest, Dict[str, Any]],
               user_context: UserContext) -> LicenseApplication:
        """
        Submit a new application for the requesting user.

        Fees and test requirements are fixed here from the application type.
        """
        with tracer.start_as_current_span("license.submit") as span:
            if not user_context.user_id:
                raise ValidationException("Applicant is required", field="userId")

            request = _parse(SubmitLicenseApplicationRequest, payload)
            span.set_attributes({
                "user.id": user_context.user_id,
                "license.application_type": request.application_type
            })

            application = LicenseApplication(
                user_id=user_context.user_id,
                application_type=request.application_type,
                license_type=request.license_type,
                license_class=request.license_class,
                emergency_contact=request.emergency_contact,
                medical_info=request.medical_info or {},
                current_license=request.current_license,
                documents=request.documents,
                fees=initial_fees(request.application_type),
                tests=initial_tests(request.application_type),
                status=ApplicationStatus.PENDING,
                created_by=user_context.user_id,
                updated_by=user_context.user_id
            )

            with tracer.start_as_current_span("db.license_application.create"):
                application.id = self.mongodb_service.create(LICENSE_APPLICATIONS, application.to_document())

            logger.info(
                "License application submitted",
                extra={
                    "application_id": application.id,
                    "user_id": user_context.user_id,
                    "application_type": application.application_type,
                    "total_fee": application.fees.total_fee
                }
            )
            return application

    def list(self, filters: Union[LicenseApplicationFilters, Dict[str, Any], None],
             pagination: Union[PaginationParams, Dict[str, Any], None],
             user_context: UserContext) -> PaginationResult:
        """List applications visible to the requester, newest first."""
        with tracer.start_as_current_span("license.list") as span:
            filters = _parse(LicenseApplicationFilters, filters)
            pagination = _parse(PaginationParams, pagination)
            query = access.build_list_query(filters, user_context)

            span.set_attributes({
                "user.id": user_context.user_id,
                "pagination.page": pagination.page,
                "pagination.limit": pagination.limit
            })

            result = self.mongodb_service.paginate(
                LICENSE_APPLICATIONS,
                filters=query,
                page=pagination.page,
                page_size=pagination.limit
            )
            result.items = [LicenseApplication.from_document(doc) for doc in result.items]
            return result

    def get(self, application_id: str, user_context: UserContext) -> LicenseApplication:
        with tracer.start_as_current_span("license.get"):
            application = self._load(application_id)
            access.check_read_access(application, user_context)
            return application

    def update(self, application_id: str,
               payload: Union[UpdateLicenseApplicationRequest, Dict[str, Any]],
               user_context: UserContext) -> LicenseApplication:
        """
        Apply an owner or administrator update.

        An administrator status change goes through the lifecycle; approving an
        application whose required tests all passed issues a license number,
        regenerated on collision up to the configured number of attempts.
        """
        with tracer.start_as_current_span("license.update") as span:
            patch = _parse(UpdateLicenseApplicationRequest, payload)
            application = self._load(application_id)
            access.check_update_access(application, patch, user_context)

            now = datetime.utcnow()
            status_change = patch.status is not None and patch.status != application.status
            issuing = status_change and lifecycle.should_issue_license(application, patch.status)

            if status_change:
                transition = lifecycle.validate_status_transition(
                    application.status, patch.status, application.tests.all_required_passed()
                )
                for warning in transition.warnings:
                    logger.warning(
                        "Administrator status override",
                        extra={
                            "application_id": application.id,
                            "admin_id": user_context.user_id,
                            "from_status": application.status,
                            "to_status": patch.status,
                            "warning": warning
                        }
                    )

            span.set_attributes({
                "license_application.id": application_id,
                "license.status_change": bool(status_change),
                "license.issuing": bool(issuing)
            })

            attempts = self.max_license_number_attempts if issuing else 1
            for attempt in range(1, attempts + 1):
                updated = application
                if status_change:
                    license_number = (
                        lifecycle.generate_license_number(now.year, self.rng) if issuing else None
                    )
                    updated = lifecycle.admin_set_status(
                        updated, patch.status, user_context.user_id, license_number, now
                    )
                updated = lifecycle.apply_patch(updated, patch, user_context.user_id, now)

                try:
                    saved = self._save(application, updated)
                except DuplicateKeyException as e:
                    if issuing and e.involves(LICENSE_NUMBER_KEY):
                        logger.warning(
                            "License number collision, regenerating",
                            extra={
                                "application_id": application.id,
                                "attempt": attempt,
                                "license_number": updated.license_details.license_number
                            }
                        )
                        continue
                    raise

                if issuing:
                    logger.info(
                        "License number issued",
                        extra={
                            "application_id": saved.id,
                            "license_number": saved.license_details.license_number,
                            "expiry_date": saved.license_details.expiry_date.isoformat()
                        }
                    )
                logger.info(
                    "License application updated",
                    extra={
                        "application_id": saved.id,
                        "user_id": user_context.user_id,
                        "status": saved.status
                    }
                )
                return saved

            logger.error(
                "License number allocation exhausted",
                extra={"application_id": application.id, "attempts": attempts}
            )
            raise ConflictException(
                f"Could not allocate a unique license number after {attempts} attempts",
                field=LICENSE_NUMBER_KEY
            )

    def schedule_test(self, application_id: str, test_kind: Union[str, LicenseTestKind],
                      payload: Union[ScheduleTestRequest, Dict[str, Any]],
                      user_context: UserContext) -> LicenseApplication:
        with tracer.start_as_current_span("license.schedule_test") as span:
            access.check_admin(user_context, "schedule tests")
            kind = testing.parse_test_kind(test_kind)
            request = _parse(ScheduleTestRequest, payload)
            span.set_attributes({"license_application.id": application_id, "license.test_kind": kind.value})

            application = self._load(application_id)
            updated = testing.schedule_test(
                application, kind, request.scheduled_date, request.instructor, user_context.user_id
            )
            saved = self._save(application, updated)

            logger.info(
                f"{kind.value} test scheduled",
                extra={
                    "application_id": saved.id,
                    "scheduled_date": request.scheduled_date.isoformat(),
                    "status": saved.status
                }
            )
            return saved

    def record_result(self, application_id: str, test_kind: Union[str, LicenseTestKind],
                      payload: Union[RecordTestResultRequest, Dict[str, Any]],
                      user_context: UserContext) -> LicenseApplication:
        with tracer.start_as_current_span("license.record_result") as span:
            access.check_admin(user_context, "record test results")
            kind = testing.parse_test_kind(test_kind)
            request = _parse(RecordTestResultRequest, payload)
            result = testing.parse_test_result(request.result)
            span.set_attributes({
                "license_application.id": application_id,
                "license.test_kind": kind.value,
                "license.test_result": result.value
            })

            application = self._load(application_id)
            updated = testing.record_result(
                application, kind, result, request.score, request.notes, user_context.user_id
            )
            saved = self._save(application, updated)

            logger.info(
                f"{kind.value} test result recorded",
                extra={
                    "application_id": saved.id,
                    "result": result.value,
                    "attempts": saved.tests.get(kind).attempts,
                    "status": saved.status
                }
            )
            return saved

    def add_note(self, application_id: str, payload: Union[AddAdminNoteRequest, Dict[str, Any]],
                 user_context: UserContext) -> LicenseApplication:
        with tracer.start_as_current_span("license.add_note"):
            access.check_admin(user_context, "add notes")
            request = _parse(AddAdminNoteRequest, payload)

            application = self._load(application_id)
            updated = lifecycle.add_note(application, request.note, user_context.user_id)
            saved = self._save(application, updated)

            logger.info(
                "Admin note added",
                extra={"application_id": saved.id, "admin_id": user_context.user_id}
            )
            return saved

    def delete(self, application_id: str, user_context: UserContext) -> None:
        """Hard delete an application."""
        with tracer.start_as_current_span("license.delete"):
            application = self._load(application_id)
            access.check_delete_access(application, user_context)

            if not self.mongodb_service.hard_delete(LICENSE_APPLICATIONS, application.id):
                raise NotFoundException("License application not found")

            logger.info(
                "License application deleted",
                extra={"application_id": application.id, "user_id": user_context.user_id}
            )

    def stats(self, user_context: UserContext) -> LicenseStatsResponse:
        """Aggregate counts, test pass totals and paid revenue."""
        with tracer.start_as_current_span("license.stats"):
            access.check_admin(user_context, "view statistics")

            status_breakdown = self._group_counts("status")
            test_stats = self.mongodb_service.aggregate(LICENSE_APPLICATIONS, [
                {
                    "$group": {
                        "_id": None,
                        **{
                            f"{kind.value}Pass": {
                                "$sum": {
                                    "$cond": [
                                        {"$eq": [f"$tests.{kind.value}.result", LicenseTestResult.PASS.value]},
                                        1,
                                        0
                                    ]
                                }
                            }
                            for kind in LicenseTestKind
                        }
                    }
                }
            ])
            revenue = self.mongodb_service.aggregate(LICENSE_APPLICATIONS, [
                {"$match": {"fees.paymentStatus": PaymentStatus.PAID.value}},
                {"$group": {"_id": None, "total": {"$sum": "$fees.totalFee"}}}
            ])

            passes = test_stats[0] if test_stats else {}
            return LicenseStatsResponse(
                total=self.mongodb_service.count(LICENSE_APPLICATIONS),
                pending=status_breakdown.get(ApplicationStatus.PENDING.value, 0),
                approved=status_breakdown.get(ApplicationStatus.APPROVED.value, 0),
                rejected=status_breakdown.get(ApplicationStatus.REJECTED.value, 0),
                issued=status_breakdown.get(ApplicationStatus.LICENSE_ISSUED.value, 0),
                revenue=revenue[0]["total"] if revenue else 0,
                status_breakdown=status_breakdown,
                license_type_breakdown=self._group_counts("licenseType"),
                application_type_breakdown=self._group_counts("applicationType"),
                test_stats=PassCounts(
                    theory_pass=passes.get("theoryPass", 0),
                    practical_pass=passes.get("practicalPass", 0),
                    medical_pass=passes.get("medicalPass", 0)
                )
            )

    def _group_counts(self, field: str) -> Dict[str, int]:
        results = self.mongodb_service.aggregate(LICENSE_APPLICATIONS, [
            {"$group": {"_id": f"${field}", "count": {"$sum": 1}}}
        ])
        return {str(row["_id"]): row["count"] for row in results if row.get("_id") is not None}
