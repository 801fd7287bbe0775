"""
Blockchain services module.

RPC access for the ownership indexer: endpoint rotation, error
classification, retry/failover and Transfer log reading.
"""

from .endpoint_pool import Endpoint, EndpointPool, make_web3_client
from .error_classifier import ErrorClass, TransientErrorClassifier
from .event_log_reader import EventLogReader, decode_transfer_log
from .failover_executor import FailoverExecutor, RetryPolicy
from .types import ScanRange, TransferEvent, partition_range


__all__ = [
    "Endpoint",
    "EndpointPool",
    "ErrorClass",
    "EventLogReader",
    "FailoverExecutor",
    "RetryPolicy",
    "ScanRange",
    "TransferEvent",
    "TransientErrorClassifier",
    "decode_transfer_log",
    "make_web3_client",
    "partition_range",
]
