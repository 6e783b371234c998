"""
ML models package for motion gesture classification.

Provides:
    - GestureLSTM: recurrent network over a window of motion samples
    - TorchSequenceClassifier: GestureLSTM behind the classifier contract
    - HybridClassifier: ML-first classifier with rule-based fallback
"""

__all__ = [
    "GestureLSTM",
    "TorchSequenceClassifier",
    "HybridClassifier",
]
