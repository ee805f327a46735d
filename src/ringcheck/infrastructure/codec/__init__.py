from ringcheck.infrastructure.codec.json_codec import JsonSubmissionCodec, to_jsonable

__all__ = ["JsonSubmissionCodec", "to_jsonable"]
