"""Service wiring.

`build_services` constructs the store adapter and everything layered on it
once per application; routes reach them through `get_services`, never
through module-level globals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from survey_builder.config import AppConfig
from survey_builder.logic.conversion import ConversionGateway, GeminiConversionGateway, SurveyConverter
from survey_builder.logic.credentials import CredentialHasher, ScryptHasher
from survey_builder.logic.record_store import RecordStore, SqlRecordStore
from survey_builder.logic.survey_repository import SurveyRepository
from survey_builder.logic.user_directory import UserDirectory

logger = logging.getLogger(__name__)


@dataclass
class Services:
    config: AppConfig
    store: RecordStore
    directory: UserDirectory
    repository: SurveyRepository
    converter: SurveyConverter


def build_services(
    config: AppConfig,
    store: Optional[RecordStore] = None,
    gateway: Optional[ConversionGateway] = None,
    hasher: Optional[CredentialHasher] = None,
) -> Services:
    if store is None:
        store = SqlRecordStore.from_url(config.store.dsn, table_name=config.store.table)
    if gateway is None:
        gateway = GeminiConversionGateway(api_key=config.gateway.api_key, model=config.gateway.model)
    if hasher is None:
        hasher = ScryptHasher(n=config.auth.scrypt_n, r=config.auth.scrypt_r, p=config.auth.scrypt_p)
    directory = UserDirectory(store, hasher)
    repository = SurveyRepository(store, directory)
    logger.info(
        "services_built store=%s gateway=%s",
        type(store).__name__,
        type(gateway).__name__,
    )
    return Services(
        config=config,
        store=store,
        directory=directory,
        repository=repository,
        converter=SurveyConverter(gateway),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


__all__ = ["Services", "build_services", "get_services"]
