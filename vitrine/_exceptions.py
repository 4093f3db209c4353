__all__ = ("VitrineError", "RecordError", "AssetError", "CompileError", "ReadError")


class VitrineError(Exception): ...


class RecordError(VitrineError, ValueError): ...


class AssetError(VitrineError): ...


class CompileError(AssetError): ...


class ReadError(AssetError): ...
