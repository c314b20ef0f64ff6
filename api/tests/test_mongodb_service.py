# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for MongoDB service layer.
"""

import pytest
from unittest.mock import MagicMock, patch
from bson import ObjectId
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from domain.errors import DuplicateKeyException
from services.mongodb import LICENSE_APPLICATIONS, MongoDBService, PaginationResult


class TestMongoDBService:
    """Test MongoDB service functionality against a mocked collection."""

    @pytest.fixture
    def collection(self):
        return MagicMock()

    @pytest.fixture
    def mongodb_service(self, collection):
        service = MongoDBService('mongodb://localhost:27017/transport_portal_test', 'transport_portal_test')
        with patch.object(service, 'get_collection', return_value=collection):
            yield service

    def test_create_assigns_object_id(self, mongodb_service, collection):
        """Test document creation returns the inserted ID."""
        inserted = ObjectId()
        collection.insert_one.return_value = MagicMock(inserted_id=inserted)

        doc_id = mongodb_service.create(LICENSE_APPLICATIONS, {"userId": "u1"})

        assert doc_id == str(inserted)
        document = collection.insert_one.call_args[0][0]
        assert isinstance(document["_id"], ObjectId)

    def test_duplicate_key_carries_key_pattern(self, mongodb_service, collection):
        collection.insert_one.side_effect = DuplicateKeyError(
            "E11000 duplicate key error",
            11000,
            {"keyPattern": {"licenseDetails.licenseNumber": 1}}
        )

        with pytest.raises(DuplicateKeyException) as exc_info:
            mongodb_service.create(LICENSE_APPLICATIONS, {"userId": "u1"})

        assert exc_info.value.involves("licenseDetails.licenseNumber")
        assert exc_info.value.status_code == 409

    def test_find_one_invalid_id(self, mongodb_service, collection):
        assert mongodb_service.find_one(LICENSE_APPLICATIONS, "not-an-id") is None
        collection.find_one.assert_not_called()

    def test_find_one(self, mongodb_service, collection):
        doc_id = ObjectId()
        collection.find_one.return_value = {"_id": doc_id, "status": "Pending"}

        document = mongodb_service.find_one(LICENSE_APPLICATIONS, str(doc_id))

        assert document["status"] == "Pending"
        collection.find_one.assert_called_once_with({"_id": doc_id})

    def test_replace_versioned_matches_version(self, mongodb_service, collection):
        """Test the write is conditional on the stored version."""
        doc_id = ObjectId()
        collection.replace_one.return_value = MagicMock(matched_count=1)

        written = mongodb_service.replace_versioned(
            LICENSE_APPLICATIONS, str(doc_id), {"_id": doc_id, "status": "Approved", "version": 4}, 4
        )

        assert written is True
        query, replacement = collection.replace_one.call_args[0]
        assert query == {"_id": doc_id, "version": 4}
        assert replacement["version"] == 5
        assert "_id" not in replacement
        assert "updatedAt" in replacement

    def test_replace_versioned_stale(self, mongodb_service, collection):
        collection.replace_one.return_value = MagicMock(matched_count=0)

        assert mongodb_service.replace_versioned(LICENSE_APPLICATIONS, str(ObjectId()), {}, 2) is False

    def test_replace_versioned_duplicate_key(self, mongodb_service, collection):
        collection.replace_one.side_effect = DuplicateKeyError(
            "E11000", 11000, {"keyPattern": {"licenseDetails.licenseNumber": 1}}
        )

        with pytest.raises(DuplicateKeyException):
            mongodb_service.replace_versioned(LICENSE_APPLICATIONS, str(ObjectId()), {}, 0)

    def test_hard_delete(self, mongodb_service, collection):
        doc_id = ObjectId()
        collection.delete_one.return_value = MagicMock(deleted_count=1)

        assert mongodb_service.hard_delete(LICENSE_APPLICATIONS, str(doc_id)) is True
        collection.delete_one.assert_called_once_with({"_id": doc_id})

    def test_pagination(self, mongodb_service, collection):
        """Test pagination functionality."""
        collection.count_documents.return_value = 25
        cursor = collection.find.return_value.sort.return_value.skip.return_value.limit.return_value
        cursor.__iter__.return_value = iter([{"_id": ObjectId()} for _ in range(5)])

        page = mongodb_service.paginate(LICENSE_APPLICATIONS, {"userId": "u1"}, page=3, page_size=10)

        assert isinstance(page, PaginationResult)
        assert page.total == 25
        assert page.total_pages == 3
        assert page.has_next is False
        assert page.has_prev is True
        assert len(page.items) == 5
        collection.find.return_value.sort.assert_called_once_with("submissionDate", DESCENDING)
        collection.find.return_value.sort.return_value.skip.assert_called_once_with(20)

    def test_create_indexes(self, mongodb_service, collection):
        mongodb_service.create_indexes()

        unique_call = collection.create_index.call_args_list[0]
        assert unique_call[0][0] == "licenseDetails.licenseNumber"
        assert unique_call[1]["unique"] is True
        assert unique_call[1]["partialFilterExpression"] == {
            "licenseDetails.licenseNumber": {"$type": "string"}
        }
