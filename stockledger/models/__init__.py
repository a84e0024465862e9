import importlib

from stockledger.models.document import Document


def import_all_models() -> None:
    for module_name in ("stockledger.models.document",):
        importlib.import_module(module_name)


__all__ = ["Document", "import_all_models"]
