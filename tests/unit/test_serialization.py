"""
Unit tests for JSON body encoding and response decoding.
"""
import json
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

import pytest
from pydantic import BaseModel, Field

from resilient_http.infrastructure.http.config import JsonSerializerSettings
from resilient_http.infrastructure.http.serialization import JsonSerializer, match_keys, to_camel_case
from resilient_http.shared.exceptions import DeserializationError
from tests.conftest import User


class Address(BaseModel):
    street_name: str
    postal_code: str


class Customer(BaseModel):
    customer_id: int
    home_address: Address
    tags: List[str] = []


class AliasedModel(BaseModel):
    internal_name: str = Field(alias="ExternalName")


@dataclass
class Order:
    order_id: int
    total_amount: float
    note: Optional[str] = None


class TracedPayload(BaseModel):
    user_name: str
    attributes: Dict[str, str] = {}
    trace_id: str = Field(alias="X_Trace_ID")


class Directory(BaseModel):
    offices: Dict[str, Address]


@dataclass
class Event:
    event_name: str
    labels: Dict[str, str]


class Item(BaseModel):
    item_name: str


class Basket(BaseModel):
    basket_id: int
    items: Optional[List[Item]] = None
    by_sku: Optional[Dict[str, Item]] = None
    pair: Optional[Tuple[Item, ...]] = None


class TestToCamelCase:
    """Test cases for key conversion."""

    @pytest.mark.parametrize("key,expected", [
        ("user_name", "userName"),
        ("UserName", "userName"),
        ("id", "id"),
        ("home_address_line", "homeAddressLine"),
        ("_private", "private"),
        ("", ""),
    ])
    def test_conversion(self, key, expected):
        assert to_camel_case(key) == expected


class TestSerialize:
    """Test cases for request body encoding."""

    def test_model_body_is_camel_cased(self):
        """Test pydantic model bodies use camelCase keys recursively."""
        customer = Customer(customer_id=1, home_address=Address(street_name="Main", postal_code="123"))

        data = json.loads(JsonSerializer().serialize(customer))

        assert data == {
            "customerId": 1,
            "homeAddress": {"streetName": "Main", "postalCode": "123"},
            "tags": [],
        }

    def test_dataclass_body_is_camel_cased(self):
        """Test dataclass bodies use camelCase keys."""
        data = json.loads(JsonSerializer().serialize(Order(order_id=5, total_amount=9.5)))

        assert data == {"orderId": 5, "totalAmount": 9.5, "note": None}

    def test_plain_dict_keys_are_kept(self):
        """Test dictionaries are sent exactly as given."""
        body = {"snake_key": 1, "PascalKey": 2}

        assert json.loads(JsonSerializer().serialize(body)) == body

    def test_camel_case_can_be_disabled(self):
        """Test camelCase conversion follows the settings."""
        serializer = JsonSerializer(JsonSerializerSettings(camel_case=False))

        data = json.loads(serializer.serialize(Order(order_id=5, total_amount=1.0)))

        assert data == {"order_id": 5, "total_amount": 1.0, "note": None}

    def test_non_ascii_is_utf8_encoded(self):
        """Test non-ASCII text is written as UTF-8, not escaped."""
        encoded = JsonSerializer().serialize({"name": "Zoë"})

        assert "Zoë".encode("utf-8") in encoded

    def test_scalar_and_list_bodies(self):
        """Test non-object bodies are encoded as JSON values."""
        serializer = JsonSerializer()

        assert serializer.serialize([1, 2]) == b"[1, 2]"
        assert serializer.serialize("text") == b'"text"'

    def test_dict_field_keys_are_kept(self):
        """Test keys inside a dict-typed field are not camel-cased."""
        payload = TracedPayload(user_name="a", attributes={"snake_key": "v"}, X_Trace_ID="t")

        data = json.loads(JsonSerializer().serialize(payload))

        assert data["userName"] == "a"
        assert data["attributes"] == {"snake_key": "v"}

    def test_explicit_alias_is_kept(self):
        """Test an explicitly aliased field is sent under its alias."""
        payload = TracedPayload(user_name="a", X_Trace_ID="t")

        data = json.loads(JsonSerializer().serialize(payload))

        assert data == {"userName": "a", "attributes": {}, "X_Trace_ID": "t"}

    def test_models_inside_dict_field_are_camel_cased(self):
        """Test dict keys are kept while model values still get camelCase fields."""
        directory = Directory(offices={"head_office": Address(street_name="Main", postal_code="1")})

        data = json.loads(JsonSerializer().serialize(directory))

        assert data == {"offices": {"head_office": {"streetName": "Main", "postalCode": "1"}}}

    def test_dataclass_dict_field_keys_are_kept(self):
        """Test dataclass field names are renamed but their dict keys are not."""
        data = json.loads(JsonSerializer().serialize(Event(event_name="e", labels={"build_id": "7"})))

        assert data == {"eventName": "e", "labels": {"build_id": "7"}}


class TestDeserialize:
    """Test cases for response body decoding."""

    @pytest.mark.parametrize("payload", [
        {"id": 1, "userName": "ada"},
        {"ID": 1, "UserName": "ada"},
        {"id": 1, "user_name": "ada"},
        {"Id": 1, "USERNAME": "ada"},
    ])
    def test_keys_matched_case_insensitively(self, payload):
        """Test response keys match fields regardless of casing."""
        user = JsonSerializer().deserialize(json.dumps(payload).encode(), User)

        assert user == User(id=1, user_name="ada")

    def test_nested_models_and_lists(self):
        """Test key matching recurses into nested models and lists."""
        payload = [{
            "CustomerId": 3,
            "HomeAddress": {"StreetName": "Elm", "PostalCode": "999"},
            "Tags": ["vip"],
        }]

        customers = JsonSerializer().deserialize(json.dumps(payload).encode(), List[Customer])

        assert customers[0].home_address.street_name == "Elm"
        assert customers[0].tags == ["vip"]

    def test_dict_of_models(self):
        """Test mapping values are matched against the value type."""
        payload = {"a": {"ID": 1, "UserName": "x"}}

        result = JsonSerializer().deserialize(json.dumps(payload).encode(), Dict[str, User])

        assert result["a"].user_name == "x"

    def test_optional_model(self):
        """Test Optional targets decode the inner model."""
        result = JsonSerializer().deserialize(b'{"ID": 2, "UserName": "y"}', Optional[User])

        assert result == User(id=2, user_name="y")

    def test_optional_list_of_models_field(self):
        """Test Optional[List[Model]] fields match nested keys."""
        payload = {"BasketId": 1, "Items": [{"ItemName": "a"}]}

        basket = JsonSerializer().deserialize(json.dumps(payload).encode(), Basket)

        assert basket.items == [Item(item_name="a")]

    def test_optional_dict_of_models_field(self):
        """Test Optional[Dict[str, Model]] fields match nested keys and keep dict keys."""
        payload = {"BasketId": 1, "BySku": {"SKU_1": {"ItemName": "b"}}}

        basket = JsonSerializer().deserialize(json.dumps(payload).encode(), Basket)

        assert basket.by_sku == {"SKU_1": Item(item_name="b")}

    def test_optional_tuple_of_models_field(self):
        """Test Optional[Tuple[Model, ...]] fields match nested keys."""
        payload = {"BasketId": 1, "Pair": [{"ItemName": "c"}, {"itemName": "d"}]}

        basket = JsonSerializer().deserialize(json.dumps(payload).encode(), Basket)

        assert basket.pair == (Item(item_name="c"), Item(item_name="d"))

    def test_optional_container_field_null(self):
        """Test a null optional container decodes to None."""
        basket = JsonSerializer().deserialize(b'{"BasketId": 1, "Items": null}', Basket)

        assert basket.items is None

    @pytest.mark.parametrize("payload,expected", [
        ({"ItemName": "x"}, Item(item_name="x")),
        ([{"ItemName": "x"}], [Item(item_name="x")]),
    ])
    def test_union_branch_chosen_by_shape(self, payload, expected):
        """Test unions match keys against the member fitting the payload shape."""
        result = JsonSerializer().deserialize(json.dumps(payload).encode(), Union[Item, List[Item]])

        assert result == expected

    def test_alias_field(self):
        """Test fields with an alias match the alias ignoring case."""
        result = JsonSerializer().deserialize(b'{"externalName": "z"}', AliasedModel)

        assert result.internal_name == "z"

    def test_dataclass_target(self):
        """Test dataclass response types are supported."""
        order = JsonSerializer().deserialize(b'{"OrderId": 4, "TotalAmount": 2.5}', Order)

        assert order == Order(order_id=4, total_amount=2.5)

    def test_untyped_target_returns_json(self):
        """Test the default target returns the decoded JSON value."""
        assert JsonSerializer().deserialize(b'{"a": [1, 2]}') == {"a": [1, 2]}

    def test_case_sensitive_mode(self):
        """Test key matching can be disabled."""
        serializer = JsonSerializer(JsonSerializerSettings(case_insensitive=False))

        with pytest.raises(DeserializationError):
            serializer.deserialize(b'{"ID": 1, "UserName": "ada"}', User)

    @pytest.mark.parametrize("content", [b"", b"   "])
    def test_empty_body_rejected(self, content):
        """Test empty bodies raise DeserializationError."""
        with pytest.raises(DeserializationError, match="empty"):
            JsonSerializer().deserialize(content, User)

    def test_invalid_json_rejected(self):
        """Test malformed JSON raises DeserializationError with the cause kept."""
        with pytest.raises(DeserializationError, match="not valid JSON") as exc_info:
            JsonSerializer().deserialize(b"{not json", User)

        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_shape_mismatch_rejected(self):
        """Test a body of the wrong shape raises DeserializationError."""
        with pytest.raises(DeserializationError, match="does not match User") as exc_info:
            JsonSerializer().deserialize(b'{"id": "not-a-number"}', User)

        assert exc_info.value.target_type is User


class TestMatchKeys:
    """Test cases for match_keys."""

    def test_unknown_keys_are_preserved(self):
        """Test keys without a matching field pass through unchanged."""
        assert match_keys(User, {"ID": 1, "Extra": True}) == {"id": 1, "Extra": True}

    def test_non_dict_data_untouched(self):
        """Test scalars are returned as-is."""
        assert match_keys(User, 5) == 5
