from previewrouter.rewrite.dispatcher import route
from previewrouter.rewrite.inbound import decode_rewrite
from previewrouter.rewrite.outbound import encode_redirect
from previewrouter.rewrite.tokens import HostnameTokenCodec, codec_for


__all__ = [
    'route',
    'decode_rewrite',
    'encode_redirect',
    'HostnameTokenCodec',
    'codec_for',
]
