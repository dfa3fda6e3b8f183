"""OpenDocument flat presentation (``.fodp``) reading and writing."""

from .decoder import FodpDecoder, decode_fodp, decode_fodp_file
from .encoder import FodpEncoder, encode_fodp, escape_xml, write_fodp

__all__ = [
    "FodpDecoder",
    "FodpEncoder",
    "decode_fodp",
    "decode_fodp_file",
    "encode_fodp",
    "escape_xml",
    "write_fodp",
]
