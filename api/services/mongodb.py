# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB service layer with versioned writes and connection pooling.
"""

import os
import logging
from datetime import datetime
from typing import List, Dict, Optional, Any
from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import (
    ConnectionFailure,
    ServerSelectionTimeoutError,
    DuplicateKeyError
)
from bson import ObjectId
from bson.errors import InvalidId

from domain.errors import DuplicateKeyException

logger = logging.getLogger(__name__)

LICENSE_APPLICATIONS = "license_applications"


class PaginationResult:
    """Result container for paginated queries."""

    def __init__(self, items: List[Dict], total: int, page: int, page_size: int):
        self.items = items
        self.total = total
        self.page = page
        self.page_size = page_size
        self.total_pages = (total + page_size - 1) // page_size
        self.has_next = page < self.total_pages
        self.has_prev = page > 1


class MongoDBService:
    """MongoDB service with single-document atomic operations and connection pooling."""

    def __init__(self, connection_string: str = None, database_name: str = None):
        """Initialize MongoDB service with connection pooling."""
        self.connection_string = connection_string or os.getenv(
            'MONGODB_URI',
            'mongodb://localhost:27017/transport_portal_dev'
        )
        self.database_name = database_name or os.getenv('MONGODB_DATABASE', 'transport_portal_dev')
        self._client: Optional[MongoClient] = None
        self._database: Optional[Database] = None

        # Connection pool settings
        self.max_pool_size = int(os.getenv('MONGODB_MAX_POOL_SIZE', '10'))
        self.min_pool_size = int(os.getenv('MONGODB_MIN_POOL_SIZE', '1'))
        self.max_idle_time_ms = int(os.getenv('MONGODB_MAX_IDLE_TIME_MS', '30000'))
        self.server_selection_timeout_ms = int(os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000'))

        logger.info(f"MongoDB service initialized for database: {self.database_name}")

    @property
    def client(self) -> MongoClient:
        """Get MongoDB client with connection pooling."""
        if self._client is None:
            try:
                self._client = MongoClient(
                    self.connection_string,
                    maxPoolSize=self.max_pool_size,
                    minPoolSize=self.min_pool_size,
                    maxIdleTimeMS=self.max_idle_time_ms,
                    serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                    retryWrites=True,
                    retryReads=True
                )
                # Test connection
                self._client.admin.command('ping')
                logger.info("MongoDB connection established successfully")
            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                raise

        return self._client

    @property
    def database(self) -> Database:
        """Get MongoDB database."""
        if self._database is None:
            self._database = self.client[self.database_name]
        return self._database

    def get_collection(self, collection_name: str) -> Collection:
        """Get MongoDB collection."""
        return self.database[collection_name]

    def close_connection(self) -> None:
        """Close MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._database = None
            logger.info("MongoDB connection closed")

    def health_check(self) -> Dict[str, Any]:
        """Check MongoDB connection health."""
        try:
            result = self.client.admin.command('ping')
            server_info = self.client.server_info()

            return {
                'status': 'healthy',
                'ping': result.get('ok') == 1,
                'version': server_info.get('version'),
                'database': self.database_name,
                'connection_pool_size': self.max_pool_size
            }
        except Exception as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e),
                'database': self.database_name
            }

    def _validate_object_id(self, doc_id: str) -> ObjectId:
        """Validate and convert string ID to ObjectId."""
        try:
            return ObjectId(doc_id)
        except (InvalidId, TypeError):
            raise ValueError(f"Invalid ObjectId format: {doc_id}")

    @staticmethod
    def _duplicate_key(collection: str, error: DuplicateKeyError) -> DuplicateKeyException:
        details = error.details or {}
        key_pattern = details.get("keyPattern") or {}
        logger.warning(
            f"Duplicate key error in {collection}",
            extra={"collection": collection, "key_pattern": key_pattern}
        )
        return DuplicateKeyException("Document with this identifier already exists", key_pattern)

    # CRUD operations

    def create(self, collection: str, document: Dict) -> str:
        """Insert a new document and return its ID."""
        try:
            if "_id" not in document:
                document["_id"] = ObjectId()

            collection_obj = self.get_collection(collection)
            result = collection_obj.insert_one(document)

            logger.info(f"Created document in {collection}: {result.inserted_id}")
            return str(result.inserted_id)

        except DuplicateKeyError as e:
            raise self._duplicate_key(collection, e)
        except Exception as e:
            logger.error(f"Failed to create document in {collection}: {e}")
            raise

    def find_one(self, collection: str, doc_id: str) -> Optional[Dict]:
        """Find a single document by ID."""
        try:
            object_id = self._validate_object_id(doc_id)
            document = self.get_collection(collection).find_one({"_id": object_id})

            if document:
                logger.debug(f"Found document {doc_id} in {collection}")
            else:
                logger.debug(f"Document {doc_id} not found in {collection}")

            return document

        except ValueError as e:
            logger.warning(f"Invalid document ID {doc_id}: {e}")
            return None
        except Exception as e:
            logger.error(f"Failed to find document {doc_id} in {collection}: {e}")
            raise

    def replace_versioned(self, collection: str, doc_id: str, document: Dict,
                          expected_version: int) -> bool:
        """
        Replace a document only if its stored version still matches.

        The written document carries ``version = expected_version + 1``.
        Returns False when no document with that ID and version exists.
        """
        try:
            object_id = self._validate_object_id(doc_id)
            replacement = dict(document)
            replacement.pop("_id", None)
            replacement["version"] = expected_version + 1
            replacement["updatedAt"] = datetime.utcnow()

            result = self.get_collection(collection).replace_one(
                {"_id": object_id, "version": expected_version},
                replacement
            )

            if result.matched_count > 0:
                logger.info(f"Updated document {doc_id} in {collection} to version {expected_version + 1}")
                return True

            logger.warning(
                f"No document updated for {doc_id} in {collection}",
                extra={"expected_version": expected_version}
            )
            return False

        except DuplicateKeyError as e:
            raise self._duplicate_key(collection, e)
        except ValueError as e:
            logger.warning(f"Invalid document ID {doc_id}: {e}")
            return False
        except Exception as e:
            logger.error(f"Failed to update document {doc_id} in {collection}: {e}")
            raise

    def hard_delete(self, collection: str, doc_id: str) -> bool:
        """Permanently delete a document."""
        try:
            object_id = self._validate_object_id(doc_id)
            result = self.get_collection(collection).delete_one({"_id": object_id})

            if result.deleted_count > 0:
                logger.warning(f"Hard deleted document {doc_id} in {collection}")
                return True

            logger.warning(f"No document hard deleted for {doc_id} in {collection}")
            return False

        except ValueError as e:
            logger.warning(f"Invalid document ID {doc_id}: {e}")
            return False
        except Exception as e:
            logger.error(f"Failed to hard delete document {doc_id} in {collection}: {e}")
            raise

    def paginate(self, collection: str, filters: Dict = None, page: int = 1, page_size: int = 10,
                 sort_by: str = "submissionDate", sort_order: int = DESCENDING) -> PaginationResult:
        """Paginate documents with sorting and filtering."""
        try:
            query = filters or {}
            collection_obj = self.get_collection(collection)

            skip = (page - 1) * page_size
            total = collection_obj.count_documents(query)

            cursor = collection_obj.find(query).sort(sort_by, sort_order).skip(skip).limit(page_size)
            documents = list(cursor)

            logger.debug(f"Paginated {len(documents)} documents from {collection} (page {page})")
            return PaginationResult(documents, total, page, page_size)

        except Exception as e:
            logger.error(f"Failed to paginate documents in {collection}: {e}")
            raise

    def count(self, collection: str, filters: Dict = None) -> int:
        """Count documents matching optional filters."""
        try:
            count = self.get_collection(collection).count_documents(filters or {})
            logger.debug(f"Counted {count} documents in {collection}")
            return count

        except Exception as e:
            logger.error(f"Failed to count documents in {collection}: {e}")
            raise

    def aggregate(self, collection: str, pipeline: List[Dict]) -> List[Dict]:
        """Run an aggregation pipeline."""
        try:
            results = list(self.get_collection(collection).aggregate(pipeline))
            logger.debug(f"Aggregation returned {len(results)} results from {collection}")
            return results

        except Exception as e:
            logger.error(f"Failed to run aggregation in {collection}: {e}")
            raise

    # Index Management

    def create_indexes(self) -> None:
        """Create uniqueness and performance indexes."""
        try:
            logger.info("Creating MongoDB indexes...")

            applications = self.get_collection(LICENSE_APPLICATIONS)
            applications.create_index(
                "licenseDetails.licenseNumber",
                unique=True,
                partialFilterExpression={"licenseDetails.licenseNumber": {"$type": "string"}},
                name="unique_license_number"
            )
            applications.create_index([("userId", ASCENDING), ("status", ASCENDING)])
            applications.create_index([("submissionDate", DESCENDING)])
            applications.create_index([("licenseDetails.expiryDate", ASCENDING)])

            logger.info("MongoDB indexes created successfully")

        except Exception as e:
            logger.error(f"Failed to create MongoDB indexes: {e}")
            raise
