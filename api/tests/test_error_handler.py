# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the problem response error handlers.

Handlers are registered on a bare Flask app so they are exercised without the
application's services.
"""

import logging
import pytest
from flask import Flask

from domain import errors
from middleware.error_handler import ErrorHandlerMiddleware
from models.requests import AddAdminNoteRequest


@pytest.fixture
def client():
    app = Flask(__name__)
    ErrorHandlerMiddleware(app)

    @app.route('/missing')
    def missing():
        raise errors.NotFoundException("License application not found")

    @app.route('/forbidden')
    def forbidden():
        raise errors.AuthorizationException("Administrator access required", field="status")

    @app.route('/not-required')
    def not_required():
        raise errors.TestNotRequiredException("theory")

    @app.route('/conflict')
    def conflict():
        raise errors.ConflictException("Application was modified concurrently", field="version")

    @app.route('/invalid')
    def invalid():
        AddAdminNoteRequest.model_validate({})

    @app.route('/crash')
    def crash():
        raise RuntimeError("connection reset")

    with app.test_client() as client:
        yield client


class TestDomainExceptions:
    """Test domain exceptions become problem responses with warnings logged."""

    @pytest.mark.parametrize("path,status,error_type", [
        ('/missing', 404, 'resource-not-found'),
        ('/forbidden', 403, 'forbidden'),
        ('/not-required', 403, 'test-not-required'),
        ('/conflict', 409, 'resource-conflict'),
    ])
    def test_problem_response(self, client, caplog, path, status, error_type):
        caplog.set_level(logging.WARNING)

        response = client.get(path)

        data = response.get_json()
        assert response.status_code == status
        assert data['status'] == status
        assert data['type'].endswith(f'/{error_type}')
        assert data['instance'] == path

    def test_warning_carries_error_details(self, client, caplog):
        caplog.set_level(logging.WARNING, logger='middleware.error_handler')

        client.get('/forbidden')

        record = next(r for r in caplog.records if r.name == 'middleware.error_handler')
        assert record.levelno == logging.WARNING
        assert record.error_message == "Administrator access required"
        assert record.field == "status"

    def test_pydantic_errors_listed(self, client):
        response = client.get('/invalid')

        data = response.get_json()
        assert response.status_code == 400
        assert data['field'] == 'note'
        assert data['errors'][0]['type'] == 'missing'


class TestUnexpectedErrors:

    def test_internal_error(self, client, caplog):
        caplog.set_level(logging.ERROR)

        response = client.get('/crash')

        assert response.status_code == 500
        assert response.get_json()['type'].endswith('/internal-server-error')

    def test_unknown_route(self, client):
        response = client.get('/nowhere')

        assert response.status_code == 404
        assert response.get_json()['title'] == 'Resource Not Found'
