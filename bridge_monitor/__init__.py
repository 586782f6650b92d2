from .models import ChainConfig, DstTx
from .validator import ChainValidator, NotSetupError, ValidationError

__all__ = ["ChainConfig", "DstTx", "ChainValidator", "NotSetupError", "ValidationError"]
