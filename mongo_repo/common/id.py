"""
Identifier type shared by every entity kind.

An ``Id`` wraps a BSON ObjectId so entities never handle driver types
directly, while documents sent to MongoDB still carry native ObjectIds.
"""

from typing import Any

from bson import ObjectId
from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from ..exceptions import MalformedIdError

_HEX_LENGTH = 24


class Id:
    """
    Globally unique, hashable entity identifier.

    Example:
        id = Id.parse("5f43a1b2c3d4e5f6a7b8c9d0")
        assert Id.parse(str(id)) == id
        doc = {"_id": id.to_object_id()}
    """

    __slots__ = ("_oid",)

    def __init__(self, oid: ObjectId | None = None) -> None:
        if oid is None:
            oid = ObjectId()
        elif not isinstance(oid, ObjectId):
            raise TypeError(f"Id wraps an ObjectId, got {type(oid).__name__}")
        self._oid = oid

    @classmethod
    def parse(cls, value: str) -> "Id":
        """
        Parse the 24-hex-digit string form of an identifier.

        Raises:
            MalformedIdError: If value is not a well-formed identifier string
        """
        if not isinstance(value, str) or len(value) != _HEX_LENGTH or not ObjectId.is_valid(value):
            raise MalformedIdError(value)
        return cls(ObjectId(value))

    @classmethod
    def from_object_id(cls, oid: ObjectId) -> "Id":
        return cls(oid)

    def to_object_id(self) -> ObjectId:
        return self._oid

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Id):
            return NotImplemented
        return self._oid.binary == other._oid.binary

    def __hash__(self) -> int:
        return hash(self._oid.binary)

    def __str__(self) -> str:
        return str(self._oid)

    def __repr__(self) -> str:
        return f"Id('{self._oid}')"

    # pydantic integration

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                cls._serialize, info_arg=True
            ),
        )

    @classmethod
    def _validate(cls, value: Any) -> "Id":
        if isinstance(value, cls):
            return value
        if isinstance(value, ObjectId):
            return cls(value)
        return cls.parse(value)

    @staticmethod
    def _serialize(value: "Id", info: core_schema.SerializationInfo) -> ObjectId | str:
        # BSON documents need the native type; JSON output gets the hex string
        if info.mode_is_json():
            return str(value)
        return value.to_object_id()
