from .models import (
    DEFAULT_PLACEHOLDER,
    Segment,
    placeholder_segment,
    segments_from_records,
    segments_to_records,
)
from .srt_codec import (
    EDITOR_POLICY,
    STANDALONE_POLICY,
    DecodeReport,
    EncodePolicy,
    decode,
    decode_report,
    decode_verbatim,
    encode,
    validate_srt,
)
from .timestamped import decode_timestamped, decode_timestamped_verbatim, encode_timestamped

__all__ = [
    "DEFAULT_PLACEHOLDER",
    "EDITOR_POLICY",
    "STANDALONE_POLICY",
    "DecodeReport",
    "EncodePolicy",
    "Segment",
    "decode",
    "decode_report",
    "decode_timestamped",
    "decode_timestamped_verbatim",
    "decode_verbatim",
    "encode",
    "encode_timestamped",
    "placeholder_segment",
    "segments_from_records",
    "segments_to_records",
    "validate_srt",
]
