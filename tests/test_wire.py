"""Tests for record decoding and custom schemas stripping."""

import json

import pytest

from sci_client.models import (
    SAP_USER_SCHEMA,
    Application,
    Email,
    Group,
    GroupMember,
    Name,
    SAPExtension,
    User,
    UsersResponse,
)
from sci_client.wire import (
    DecodeError,
    NilResponseError,
    canonical_json,
    get_custom_schemas,
    unmarshal_response,
)

USER_RESPONSE = {
    "id": "u1",
    "userName": "jdoe",
    "name": {"givenName": "John", "familyName": "Doe"},
    "emails": [{"value": "jdoe@example.com", "primary": True}],
    "schemas": ["urn:ietf:params:scim:schemas:core:2.0:User"],
    SAP_USER_SCHEMA: {"sendMail": False, "mailVerified": True},
    "urn:x:ext": {"a": 1, "b": False},
}


def test_declared_fields_use_wire_keys():
    declared = User.declared_fields()
    assert "userName" in declared
    assert SAP_USER_SCHEMA in declared
    assert "sapExtension" not in declared
    assert GroupMember.declared_fields() >= {"value", "type"}


def test_declared_fields_cached():
    assert User.declared_fields() == User.declared_fields()


def test_unmarshal_response_with_custom_schemas():
    user, custom_schemas = unmarshal_response(User, USER_RESPONSE, retrieve_custom_schemas=True)
    assert user.id == "u1"
    assert user.name.givenName == "John"
    assert user.emails[0].value == "jdoe@example.com"
    assert user.sapExtension.mailVerified is True
    assert json.loads(custom_schemas) == {"urn:x:ext": {"a": 1, "b": False}}
    assert custom_schemas == '{"urn:x:ext":{"a":1,"b":false}}'


def test_unmarshal_response_without_custom_schemas():
    user, custom_schemas = unmarshal_response(User, USER_RESPONSE)
    assert user.userName == "jdoe"
    assert custom_schemas == ""


def test_unmarshal_response_does_not_mutate_input():
    before = json.dumps(USER_RESPONSE, sort_keys=True)
    unmarshal_response(User, USER_RESPONSE, retrieve_custom_schemas=True)
    assert json.dumps(USER_RESPONSE, sort_keys=True) == before


def test_unmarshal_nil_response():
    with pytest.raises(NilResponseError):
        unmarshal_response(User, None)
    with pytest.raises(NilResponseError):
        unmarshal_response(User, None, retrieve_custom_schemas=True)


@pytest.mark.parametrize(
    "res",
    [
        {"userName": 123},
        {"emails": {"value": "x"}},
        {"active": "yes"},
        {"name": "John"},
        ["not", "an", "object"],
    ],
)
def test_unmarshal_shape_mismatch(res):
    with pytest.raises(DecodeError):
        unmarshal_response(User, res)


def test_unmarshal_empty_object():
    user, custom_schemas = unmarshal_response(User, {}, retrieve_custom_schemas=True)
    assert user == User()
    assert custom_schemas == ""


def test_unmarshal_list_response():
    res = {
        "totalResults": 2,
        "Resources": [{"id": "1", "userName": "a"}, {"id": "2", "userName": "b"}],
    }
    users, _ = unmarshal_response(UsersResponse, res)
    assert users.totalResults == 2
    assert [u.userName for u in users.Resources] == ["a", "b"]


def test_integral_float_decodes_to_int():
    users, _ = unmarshal_response(UsersResponse, {"totalResults": 3.0})
    assert users.totalResults == 3
    with pytest.raises(DecodeError):
        unmarshal_response(UsersResponse, {"totalResults": 3.5})


def test_round_trip():
    user = User(
        id="u1",
        userName="jdoe",
        name=Name(givenName="John", familyName="Doe"),
        emails=[Email(value="jdoe@example.com", primary=True)],
        sapExtension=SAPExtension(sendMail=False),
        active=True,
    )
    decoded, custom_schemas = unmarshal_response(User, user.to_dict(), retrieve_custom_schemas=True)
    assert decoded == user
    assert custom_schemas == ""


def test_to_dict_omits_none_and_uses_wire_keys():
    group = Group(displayName="admins", members=[GroupMember(value="u1")])
    assert group.to_dict() == {"displayName": "admins", "members": [{"value": "u1"}]}

    app = Application(name="app", multiTenantApp=False)
    assert app.to_dict() == {"name": "app", "multiTenantApp": False}


# ============ get_custom_schemas ============

def test_get_custom_schemas_removes_declared_fields():
    remainder = json.loads(get_custom_schemas(User, USER_RESPONSE))
    assert not set(remainder) & User.declared_fields()
    assert remainder == {"urn:x:ext": {"a": 1, "b": False}}


def test_get_custom_schemas_is_idempotent():
    once = get_custom_schemas(User, USER_RESPONSE)
    twice = get_custom_schemas(User, json.loads(once))
    assert once == twice


def test_get_custom_schemas_nothing_left():
    assert get_custom_schemas(User, {"id": "1", "userName": "x"}) == ""


def test_get_custom_schemas_is_case_sensitive():
    remainder = json.loads(get_custom_schemas(User, {"username": "x", "userName": "x"}))
    assert remainder == {"username": "x"}


def test_get_custom_schemas_rejects_non_object():
    with pytest.raises(DecodeError):
        get_custom_schemas(User, [1, 2])


def test_canonical_json():
    assert canonical_json({"b": 1, "a": [True, None]}) == '{"a":[true,null],"b":1}'
    assert canonical_json({"名": "值"}) == '{"名":"值"}'
