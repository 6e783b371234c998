"""
Training package for the GestureLSTM classifier.

Provides:
    - MotionWindowDataset: synthetic labelled motion windows
    - train.py: standalone training script
"""
