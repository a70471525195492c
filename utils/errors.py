"""Error taxonomy for the tubuyaki service"""


class TubuyakiError(Exception):
    """Base class for all tubuyaki service errors"""
    pass


class ValidationError(TubuyakiError):
    """Malformed input (empty raw text, invalid enum value)"""
    pass


class NotFoundError(TubuyakiError):
    """Operation targets a record id that does not exist"""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Tubuyaki {record_id} not found")


class TransformFailure(TubuyakiError):
    """LLM call failed or returned output that could not be parsed"""
    pass


class StoreError(TubuyakiError):
    """Persistence layer failure"""
    pass
