"""Tests for the HTTP API."""

import os
import sys

import pytest
from fastapi.testclient import TestClient

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from main import app


@pytest.fixture
def client():
    return TestClient(app)


def person(person_id, **fields):
    return {"id": person_id, **fields}


# ============================================================================
# Health Tests
# ============================================================================

class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


# ============================================================================
# Duplicate Detection Tests
# ============================================================================

class TestDuplicatesEndpoint:
    """Tests for POST /duplicates."""

    def test_reports_labeled_matches(self, client):
        people = [
            person("a", firstName="John", lastName="Smith", birthDate="1900"),
            person("b", firstName="John", lastName="Smith", birthDate="1900"),
        ]
        response = client.post("/duplicates", json={"people": people})
        assert response.status_code == 200

        data = response.json()
        assert data["hasDuplicates"] is True
        match = data["matches"][0]
        assert match["confidence"] == 100
        assert match["label"] == "high"
        assert match["person1"]["firstName"] == "John"
        assert match["reasons"] == ["Names are 100% similar", "Same birth year"]

    def test_min_confidence(self, client):
        people = [
            person("a", firstName="Mary", lastName="Smith"),
            person("b", firstName="John", lastName="Smith"),
        ]
        response = client.post("/duplicates", json={"people": people, "minConfidence": 70})
        assert response.status_code == 200
        assert response.json() == {"hasDuplicates": False, "matches": []}

    def test_rejects_person_without_id(self, client):
        response = client.post("/duplicates", json={"people": [{"firstName": "John"}]})
        assert response.status_code == 422


# ============================================================================
# Validation Tests
# ============================================================================

class TestValidateEndpoint:
    """Tests for POST /validate and POST /validate/orphan-fixes."""

    def test_issues_in_camel_case(self, client):
        people = [person("a", firstName="Ann", gender="female", parentId1="ghost")]
        response = client.post("/validate", json={"people": people})
        assert response.status_code == 200

        data = response.json()
        assert data["hasErrors"] is False
        assert data["hasWarnings"] is True
        assert data["issues"] == [{
            "personId": "a",
            "personName": "Ann",
            "field": "parent_id1",
            "severity": "warning",
            "message": "References a parent (ghost) that no longer exists in the tree",
            "howToFix": data["issues"][0]["howToFix"],
        }]

    def test_cycle_is_error(self, client):
        people = [
            person("a", firstName="Ann", gender="female", parentId1="b"),
            person("b", firstName="Bob", gender="male", parentId1="a"),
        ]
        data = client.post("/validate", json={"people": people}).json()
        assert data["hasErrors"] is True
        assert {i["personId"] for i in data["issues"] if i["severity"] == "error"} == {"a", "b"}

    def test_orphan_fixes(self, client):
        people = [
            person("a", firstName="Ann", gender="female", parentId1="ghost", spouseIds=["b"]),
            person("b", firstName="Bob", gender="male", spouseIds=["a"]),
        ]
        response = client.post("/validate/orphan-fixes", json={"people": people})
        assert response.status_code == 200

        fixes = response.json()["fixes"]
        assert len(fixes) == 1
        assert fixes[0]["personId"] == "a"
        assert fixes[0]["updates"] == {"parent_id1": None}


# ============================================================================
# GEDCOM Tests
# ============================================================================

class TestGedcomEndpoints:
    """Tests for GEDCOM export and upload."""

    def test_export(self, client):
        people = [person("a", firstName="Ann", lastName="Lee", gender="female")]
        response = client.post("/export-gedcom", json={"people": people, "treeName": "Lee Family"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.headers["content-disposition"] == 'attachment; filename="Lee_Family.ged"'
        assert response.text.startswith("0 HEAD")
        assert "0 @Ia@ INDI" in response.text
        assert "1 FILE Lee Family.ged" in response.text

    def test_export_requires_tree_name(self, client):
        response = client.post("/export-gedcom", json={"people": [], "treeName": ""})
        assert response.status_code == 422

    def test_import_round_trip(self, client):
        people = [
            person("a", firstName="Ann", lastName="Lee", gender="female", spouseIds=["b"]),
            person("b", firstName="Ben", lastName="Lee", gender="male", spouseIds=["a"]),
        ]
        exported = client.post("/export-gedcom", json={"people": people, "treeName": "Lee"}).content

        response = client.post(
            "/import-gedcom",
            files={"file": ("lee.ged", exported, "text/plain")},
        )
        assert response.status_code == 200

        data = response.json()
        assert data["familyCount"] == 1
        assert [p["id"] for p in data["people"]] == ["a", "b"]
        assert data["people"][0]["spouseIds"] == ["b"]
        assert data["errors"] == []

    def test_import_rejects_other_extensions(self, client):
        response = client.post(
            "/import-gedcom",
            files={"file": ("tree.txt", b"0 HEAD\n0 TRLR\n", "text/plain")},
        )
        assert response.status_code == 400
        assert "GEDCOM" in response.json()["detail"]

    def test_import_latin1(self, client):
        content = "0 HEAD\n0 @I1@ INDI\n1 NAME José /Núñez/\n0 TRLR\n".encode("latin-1")
        response = client.post(
            "/import-gedcom",
            files={"file": ("old.GED", content, "text/plain")},
        )
        assert response.status_code == 200
        assert response.json()["people"][0]["lastName"] == "Núñez"
