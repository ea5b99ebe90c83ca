from __future__ import annotations
from typing import List

import numpy as np
from pydantic import TypeAdapter, ValidationError

from .errors import DecodeError
from .models import Cat

_CAT_LIST = TypeAdapter(List[Cat])


def decode_cats(raw: bytes) -> List[Cat]:
    '''Decode a search response (JSON array of cat objects).'''
    try:
        return _CAT_LIST.validate_json(raw)
    except ValidationError as e:
        raise DecodeError(f"Malformed cat page: {e.error_count()} error(s)") from e


def decode_image(raw: bytes) -> np.ndarray:
    '''cv2.imdecode on an in-memory buffer; BGR uint8 array.'''
    import cv2

    if not raw:
        raise DecodeError("Empty image payload")
    data = np.frombuffer(raw, dtype=np.uint8)
    image = cv2.imdecode(data, cv2.IMREAD_COLOR)
    if image is None:
        raise DecodeError(f"Undecodable image payload ({len(raw)} bytes)")
    return image
