# SPDX-License-Identifier: Apache-2.0

"""
License application endpoints.

Thin HTTP layer over ``LicenseApplicationService``: views parse the request,
call the service with the authenticated user context and serialize the
result. Domain exceptions propagate to the registered error handlers.
"""

from flask import Blueprint, request, jsonify, current_app
from typing import Any, Dict

from middleware.auth import require_auth
from models.entities import LicenseApplication, UserContext
from models.responses import LicenseApplicationCollection, PaginationInfo

licenses_bp = Blueprint('licenses', __name__, url_prefix='/api/licenses')

PAGINATION_KEYS = ('page', 'limit')


def _serialize(application: LicenseApplication) -> Dict[str, Any]:
    return application.model_dump(by_alias=True, mode='json')


def _json_body() -> Dict[str, Any]:
    return request.get_json(silent=True) or {}


def _list_response(user_context: UserContext, filters: Dict[str, Any]):
    pagination = {key: request.args[key] for key in PAGINATION_KEYS if key in request.args}
    result = current_app.license_service.list(filters, pagination, user_context)

    collection = LicenseApplicationCollection(
        count=len(result.items),
        total=result.total,
        pagination=PaginationInfo(
            current_page=result.page,
            total_pages=result.total_pages,
            has_next=result.has_next,
            has_prev=result.has_prev
        ),
        licenses=[_serialize(application) for application in result.items]
    )
    return jsonify(collection.model_dump(by_alias=True)), 200


@licenses_bp.post('')
@require_auth
def submit_application(user_context: UserContext):
    """Submit a new license application for the caller."""
    application = current_app.license_service.submit(_json_body(), user_context)
    return jsonify(_serialize(application)), 201


@licenses_bp.get('')
@require_auth
def list_applications(user_context: UserContext):
    """
    List applications.

    Accepts page, limit, status, applicationType, licenseType, search and,
    for administrators, userId.
    """
    filters = {key: value for key, value in request.args.items() if key not in PAGINATION_KEYS}
    return _list_response(user_context, filters)


@licenses_bp.get('/my-licenses')
@require_auth
def list_my_applications(user_context: UserContext):
    filters = {
        key: value for key, value in request.args.items()
        if key not in PAGINATION_KEYS and key != 'userId'
    }
    filters['userId'] = user_context.user_id
    return _list_response(user_context, filters)


@licenses_bp.get('/stats')
@require_auth
def application_stats(user_context: UserContext):
    stats = current_app.license_service.stats(user_context)
    return jsonify(stats.model_dump(by_alias=True)), 200


@licenses_bp.get('/<application_id>')
@require_auth
def get_application(user_context: UserContext, application_id: str):
    application = current_app.license_service.get(application_id, user_context)
    return jsonify(_serialize(application)), 200


@licenses_bp.put('/<application_id>')
@require_auth
def update_application(user_context: UserContext, application_id: str):
    application = current_app.license_service.update(application_id, _json_body(), user_context)
    return jsonify(_serialize(application)), 200


@licenses_bp.delete('/<application_id>')
@require_auth
def delete_application(user_context: UserContext, application_id: str):
    current_app.license_service.delete(application_id, user_context)
    return jsonify({"message": "License application deleted successfully"}), 200


@licenses_bp.post('/<application_id>/tests/<test_kind>/schedule')
@require_auth
def schedule_test(user_context: UserContext, application_id: str, test_kind: str):
    application = current_app.license_service.schedule_test(
        application_id, test_kind, _json_body(), user_context
    )
    return jsonify(_serialize(application)), 200


@licenses_bp.post('/<application_id>/tests/<test_kind>/result')
@require_auth
def record_test_result(user_context: UserContext, application_id: str, test_kind: str):
    application = current_app.license_service.record_result(
        application_id, test_kind, _json_body(), user_context
    )
    return jsonify(_serialize(application)), 200


@licenses_bp.post('/<application_id>/notes')
@require_auth
def add_admin_note(user_context: UserContext, application_id: str):
    application = current_app.license_service.add_note(application_id, _json_body(), user_context)
    return jsonify(_serialize(application)), 201
