"""Tests for SchemasClient."""

import pytest

from sci_client import ClientError, RecordValidationError
from sci_client.models import Schema, SchemaAttribute
from tests.conftest import assert_call

SCHEMA_ID = "urn:sap:cloud:scim:schemas:extension:custom:2.0:Employee"

SCHEMA = Schema(
    id=SCHEMA_ID,
    name="Employee",
    description="employee attributes",
    schemas=["urn:ietf:params:scim:schemas:core:2.0:Schema"],
    attributes=[
        SchemaAttribute(name="costCenter", type="string", mutability="readWrite", returned="default",
                        uniqueness="none", multivalued=False, required=False, caseExact=False),
    ],
)


def test_get_all(client, recorder):
    recorder.add("GET", "/scim/Schemas/", json_body={
        "totalResults": 1,
        "Resources": [SCHEMA.to_dict()],
    })
    schemas = client.schemas.get_all()
    assert_call(recorder.last, "GET", "/scim/Schemas/")
    assert schemas.totalResults == 1
    assert schemas.Resources[0].attributes[0].name == "costCenter"


def test_get(client, recorder):
    recorder.add("GET", f"/scim/Schemas/{SCHEMA_ID}", json_body=SCHEMA.to_dict())
    schema = client.schemas.get(SCHEMA_ID)
    assert schema == SCHEMA


def test_create(client, recorder):
    recorder.add("POST", "/scim/Schemas/", status=201, json_body=SCHEMA.to_dict())
    schema = client.schemas.create(SCHEMA)
    assert_call(recorder.last, "POST", "/scim/Schemas/", SCHEMA.to_dict())
    assert schema.name == "Employee"


def test_create_error(client, recorder):
    recorder.add("POST", "/scim/Schemas/", status=400, json_body={"detail": "invalid schema id"})
    with pytest.raises(ClientError, match="invalid schema id"):
        client.schemas.create(SCHEMA)


def test_delete(client, recorder):
    recorder.add("DELETE", f"/scim/Schemas/{SCHEMA_ID}", status=204)
    client.schemas.delete(SCHEMA_ID)
    assert_call(recorder.last, "DELETE", f"/scim/Schemas/{SCHEMA_ID}")


@pytest.mark.parametrize("schema", [Schema(name="x"), Schema(id=SCHEMA_ID)])
def test_validate(schema):
    with pytest.raises(RecordValidationError):
        schema.validate()
