# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Transport Services Portal API - Flask Application Entry Point

This module initializes the Flask application with OpenAPI 3.0 support,
configures middleware, and wires the driver's license application service.
"""

import os
from datetime import datetime
from flask import jsonify
from flask_openapi3 import OpenAPI, Info, Tag
from observability.config import setup_observability
from observability.middleware import add_observability_middleware

from middleware.auth import AuthMiddleware
from middleware.error_handler import ErrorHandlerMiddleware
from services.auth import AuthService
from services.licensing import LicenseApplicationService
from services.mongodb import MongoDBService

# Initialize observability first
setup_observability()

SERVICE_NAME = "transport-portal-api"

info = Info(
    title="Transport Services Portal API",
    version=os.getenv('SERVICE_VERSION', '1.0.0'),
    description="Driver's license application lifecycle API"
)

tags = [
    Tag(name="Licenses", description="Driver's license applications"),
    Tag(name="Health", description="System health and status")
]

app = OpenAPI(__name__, info=info)

add_observability_middleware(app)

# Environment configuration
app.config['ENVIRONMENT'] = os.getenv('ENVIRONMENT', 'development')
app.config['DEBUG'] = app.config['ENVIRONMENT'] == 'development'
app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET', 'dev-secret-key')
app.config['MONGODB_URI'] = os.getenv('MONGODB_URI', 'mongodb://localhost:27017/transport_portal_dev')
app.config['BASE_URL'] = os.getenv('BASE_URL', 'http://localhost:5000')

# Initialize services
mongodb_service = MongoDBService(app.config['MONGODB_URI'])
auth_service = AuthService(app.config['JWT_SECRET_KEY'])
license_service = LicenseApplicationService(mongodb_service)

# Initialize middleware
auth_middleware = AuthMiddleware(auth_service)
error_handler = ErrorHandlerMiddleware(app)

# Make services available to routes
app.mongodb_service = mongodb_service
app.auth_service = auth_service
app.license_service = license_service
app.auth_middleware = auth_middleware

# Register routes
from routes.licenses import licenses_bp

app.register_blueprint(licenses_bp)


@app.route('/api/healthz')
def health_check():
    """Health check endpoint reporting database connectivity."""
    database = app.mongodb_service.health_check()
    healthy = database.get('status') == 'healthy'

    return jsonify({
        "status": "healthy" if healthy else "unhealthy",
        "service": SERVICE_NAME,
        "version": info.version,
        "environment": app.config['ENVIRONMENT'],
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "dependencies": {"mongodb": database}
    }), 200 if healthy else 503


if __name__ == '__main__':
    # Development server
    app.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=app.config['DEBUG']
    )
