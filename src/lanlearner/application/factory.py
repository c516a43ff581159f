from lanlearner.application.config import AppConfig
from lanlearner.application.state import StateRepository
from lanlearner.domain.interfaces import DefinitionLookup, PageExporter


def get_repository(config: AppConfig) -> StateRepository:
    """Build the state repository over the JSON store in ``config.data_dir``."""
    from lanlearner.infrastructure.storage import JsonFileStore

    return StateRepository(JsonFileStore(config.data_dir, config.storage_quota_bytes))


def get_definition_lookup(config: AppConfig) -> DefinitionLookup:
    from lanlearner.infrastructure.adapters.dictionary import DictionaryApiLookup

    return DictionaryApiLookup(config.dictionary_url, timeout=config.request_timeout)


def get_page_exporter(config: AppConfig) -> PageExporter:
    from lanlearner.infrastructure.adapters.page_export import PageExportClient

    return PageExportClient(config.page_export_url, timeout=config.request_timeout)
