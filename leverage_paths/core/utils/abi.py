from __future__ import annotations

from typing import Any

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address
from hexbytes import HexBytes


def abi_type(param: dict[str, Any]) -> str:
    typ = str(param["type"])
    if not typ.startswith("tuple"):
        return typ
    inner = ",".join(abi_type(c) for c in param.get("components", []))
    return f"({inner}){typ[len('tuple'):]}"


def find_function(abi: list[dict[str, Any]], fn_name: str) -> dict[str, Any]:
    for entry in abi:
        if entry.get("type") == "function" and entry.get("name") == fn_name:
            return entry
    raise ValueError(f"Function {fn_name} not found in ABI")


def function_selector(fn_abi: dict[str, Any]) -> bytes:
    types = ",".join(abi_type(p) for p in fn_abi.get("inputs", []))
    return function_signature_to_4byte_selector(f"{fn_abi['name']}({types})")


def _to_abi_value(param: dict[str, Any], value: Any) -> Any:
    typ = str(param["type"])
    if typ.startswith("tuple"):
        components = param.get("components", [])
        if typ.endswith("]"):
            element = {**param, "type": typ[: typ.rindex("[")]}
            return [_to_abi_value(element, v) for v in value]
        if isinstance(value, dict):
            value = [value[c["name"]] for c in components]
        return tuple(_to_abi_value(c, v) for c, v in zip(components, value, strict=True))
    if typ.endswith("]"):
        element = {**param, "type": typ[: typ.rindex("[")]}
        return [_to_abi_value(element, v) for v in value]
    if typ == "address":
        return to_checksum_address(value)
    if typ.startswith("bytes"):
        return bytes(HexBytes(value))
    return value


def encode_function_call(
    abi: list[dict[str, Any]], fn_name: str, args: list[Any] | tuple[Any, ...]
) -> str:
    fn_abi = find_function(abi, fn_name)
    inputs = fn_abi.get("inputs", [])
    if len(inputs) != len(args):
        raise ValueError(
            f"Failed to encode {fn_name}: expected {len(inputs)} args, got {len(args)}"
        )
    types = [abi_type(p) for p in inputs]
    values = [_to_abi_value(p, a) for p, a in zip(inputs, args, strict=True)]
    try:
        params = encode(types, values)
    except (ValueError, TypeError) as exc:
        raise ValueError(f"Failed to encode {fn_name}: {exc}") from exc
    return "0x" + (function_selector(fn_abi) + params).hex()


def _from_abi_value(param: dict[str, Any], value: Any) -> Any:
    typ = str(param["type"])
    if typ.startswith("tuple"):
        components = param.get("components", [])
        if typ.endswith("]"):
            element = {**param, "type": typ[: typ.rindex("[")]}
            return [_from_abi_value(element, v) for v in value]
        return {
            c.get("name") or str(i): _from_abi_value(c, v)
            for i, (c, v) in enumerate(zip(components, value, strict=True))
        }
    if typ == "address":
        return to_checksum_address(value)
    if typ.startswith("bytes") and typ != "bytes" and not typ.endswith("]"):
        return "0x" + bytes(value).hex()
    return value


def decode_function_result(
    abi: list[dict[str, Any]], fn_name: str, data: bytes | str
) -> Any:
    """Decode return data; structs become dicts keyed by component name.

    A single output is returned bare, several outputs as a tuple.
    """
    fn_abi = find_function(abi, fn_name)
    outputs = fn_abi.get("outputs", [])
    raw = bytes(HexBytes(data))
    decoded = decode([abi_type(p) for p in outputs], raw)
    values = tuple(_from_abi_value(p, v) for p, v in zip(outputs, decoded, strict=True))
    if len(values) == 1:
        return values[0]
    return values
