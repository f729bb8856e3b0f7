from .sentiment import SentimentGatePolicy

__all__ = ["SentimentGatePolicy"]
