"""
Explicit composition of the transactions service from settings.
"""
from typing import Optional

from core.cache import CacheFirstDataSource, RedisCacheService, create_redis_client
from core.config import Settings, get_settings
from core.json_schemas import compile_schemas
from core.logger import setup_logger
from core.network import NetworkService
from core.validation import JsonSchemaService, ValidationErrorFactory
from datasources.swaps_api import SwapsApi
from datasources.transaction_api import TransactionApi
from mappers.classifier import CustomFallbackMapper, TransactionMapper
from mappers.creation import CreationTransactionMapper
from mappers.custom import CustomTransactionMapper
from mappers.data_decoded import DataDecodedParamHelper, DataDecoder
from mappers.details import MultisigExecutionDetailsMapper, TransactionDataMapper, TransactionDetailsMapper
from mappers.history import TransactionsHistoryMapper
from mappers.human_description import HumanDescriptionMapper
from mappers.imitation import ImitationTransactionsHelper
from mappers.module import ModuleTransactionMapper, ModuleTransactionStatusMapper
from mappers.multisig import (
    MultisigTransactionExecutionInfoMapper,
    MultisigTransactionMapper,
    MultisigTransactionStatusMapper,
)
from mappers.queued_items import QueuedItemsMapper
from mappers.settings_change import SettingsChangeMapper
from mappers.swap_order import SwapOrderMapper
from mappers.transaction_info import MultisigTransactionInfoMapper
from mappers.transfers import TransferInfoMapper, TransferMapper
from services.transactions_service import TransactionsService

logger = setup_logger(__name__)


def build_transactions_service(
    settings: Optional[Settings] = None,
    network: Optional[NetworkService] = None,
    cache: Optional[RedisCacheService] = None,
) -> TransactionsService:
    """
    Wire every collaborator of the transactions service.

    Schemas are compiled here, so a broken schema set fails at startup.

    Args:
        settings: Settings to use (default: process settings)
        network: Transport to use (default: a requests-backed NetworkService)
        cache: Cache to use (default: Redis at REDIS_URL)

    Returns:
        Ready TransactionsService

    Raises:
        ConfigurationError: If the payload schemas cannot be compiled
    """
    if settings is None:
        settings = get_settings()
    if network is None:
        network = NetworkService(
            timeout=settings.http_timeout,
            retry_attempts=settings.http_retry_attempts,
        )
    if cache is None:
        cache = RedisCacheService(create_redis_client(settings.redis_url))
    data_source = CacheFirstDataSource(
        cache=cache,
        network=network,
        default_expire_seconds=settings.cache_ttl_seconds,
    )
    schemas = compile_schemas(JsonSchemaService())
    error_factory = ValidationErrorFactory()

    transaction_api = TransactionApi(
        chain_id=settings.chain_id,
        base_url=settings.transaction_service_url,
        data_source=data_source,
        schemas=schemas,
        validation_error_factory=error_factory,
        invalidate_on_validation_error=settings.invalidate_cache_on_validation_error,
    )
    swaps_api = SwapsApi(
        chain_id=settings.chain_id,
        base_url=settings.swaps_api_url,
        data_source=data_source,
        schemas=schemas,
        validation_error_factory=error_factory,
    )

    data_decoder = DataDecoder()
    param_helper = DataDecodedParamHelper()
    human_description_mapper = HumanDescriptionMapper(param_helper, enabled=settings.human_descriptions_enabled)
    custom_transaction_mapper = CustomTransactionMapper(param_helper, human_description_mapper)
    transfer_info_mapper = TransferInfoMapper(transaction_api, param_helper, human_description_mapper)
    transaction_info_mapper = MultisigTransactionInfoMapper(
        data_decoder=data_decoder,
        param_helper=param_helper,
        transfer_info_mapper=transfer_info_mapper,
        settings_change_mapper=SettingsChangeMapper(param_helper, human_description_mapper),
        custom_transaction_mapper=custom_transaction_mapper,
        swap_order_mapper=SwapOrderMapper(
            swaps_api=swaps_api,
            token_api=transaction_api,
            param_helper=param_helper,
            human_description_mapper=human_description_mapper,
            settlement_contracts=settings.swaps_settlement_contracts,
            explorer_url=settings.swaps_explorer_url,
        ),
    )

    multisig_transaction_mapper = MultisigTransactionMapper(
        MultisigTransactionStatusMapper(),
        MultisigTransactionExecutionInfoMapper(),
        transaction_info_mapper,
    )
    module_transaction_mapper = ModuleTransactionMapper(ModuleTransactionStatusMapper(), transaction_info_mapper)
    creation_transaction_mapper = CreationTransactionMapper()
    transfer_mapper = TransferMapper(transfer_info_mapper)

    transaction_mapper = TransactionMapper(
        multisig_transaction_mapper=multisig_transaction_mapper,
        module_transaction_mapper=module_transaction_mapper,
        creation_transaction_mapper=creation_transaction_mapper,
        transfer_mapper=transfer_mapper,
        custom_fallback_mapper=CustomFallbackMapper(data_decoder, custom_transaction_mapper),
    )
    imitation_helper = ImitationTransactionsHelper(
        prefix_length=settings.imitation_prefix_length,
        suffix_length=settings.imitation_suffix_length,
        max_edit_distance=settings.imitation_max_edit_distance,
        value_tolerance=settings.imitation_value_tolerance,
        echo_limit=settings.imitation_echo_limit,
    )

    logger.info(f"Transactions service ready for chain {settings.chain_id} at {settings.transaction_service_url}")
    return TransactionsService(
        transaction_api=transaction_api,
        details_mapper=TransactionDetailsMapper(
            multisig_transaction_mapper=multisig_transaction_mapper,
            module_transaction_mapper=module_transaction_mapper,
            transfer_mapper=transfer_mapper,
            creation_transaction_mapper=creation_transaction_mapper,
            transaction_data_mapper=TransactionDataMapper(data_decoder),
            multisig_execution_details_mapper=MultisigExecutionDetailsMapper(),
        ),
        history_mapper=TransactionsHistoryMapper(
            transaction_mapper,
            imitation_helper,
            max_concurrent_requests=settings.max_concurrent_requests,
        ),
        queued_items_mapper=QueuedItemsMapper(),
        imitation_helper=imitation_helper,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
