"""
GestureLSTM: small recurrent network for motion gesture classification.

Architecture:
    Input  : (batch, window_size, 6) rotation rate + user acceleration
    LSTM   : hidden_size units, one layer, batch_first
    FC     : hidden_size -> num_classes on the last time step
    Output : raw logits (softmax applied by the caller)

The LSTM's (hidden, cell) pair is returned with every forward pass so the
caller can feed it back in the next time the same window slot is classified.
"""

import logging

import torch
import torch.nn as nn

logger = logging.getLogger(__name__)

# Class order of the exported model (must match training label order)
DEFAULT_GESTURE_CLASSES = [
    "chop_it",
    "drive_it",
    "shake_it",
    "rest_it",
]

NUM_DEFAULT_CLASSES = len(DEFAULT_GESTURE_CLASSES)
NUM_INPUT_FEATURES = 6


class GestureLSTM(nn.Module):
    """Single-layer LSTM classifier over a window of motion samples."""

    def __init__(self, input_dim=NUM_INPUT_FEATURES, hidden_size=64,
                 num_classes=NUM_DEFAULT_CLASSES, dropout=0.2):
        super(GestureLSTM, self).__init__()

        self.input_dim = input_dim
        self.hidden_size = hidden_size
        self.num_classes = num_classes

        self.lstm = nn.LSTM(input_dim, hidden_size, num_layers=1, batch_first=True)
        self.dropout = nn.Dropout(dropout)
        self.classifier = nn.Linear(hidden_size, num_classes)

    def forward(self, x, state=None):
        """Forward pass.

        Args:
            x: Tensor of shape (batch, window_size, input_dim)
            state: optional (h, c), each (1, batch, hidden_size)

        Returns:
            (logits of shape (batch, num_classes), (h, c))
        """
        out, (h, c) = self.lstm(x, state)
        logits = self.classifier(self.dropout(out[:, -1, :]))
        return logits, (h, c)

    def predict_proba(self, x, state=None):
        """Softmax probabilities plus the new recurrent state (inference only)."""
        self.eval()
        with torch.no_grad():
            logits, new_state = self.forward(x, state)
            return torch.softmax(logits, dim=1), new_state

    @classmethod
    def load_checkpoint(cls, path, device="cpu"):
        """Load a trained model from checkpoint.

        Args:
            path: Path to .pth checkpoint file
            device: Device to load onto ('cpu' or 'cuda')

        Returns:
            (model in eval mode, list of class names)
        """
        checkpoint = torch.load(path, map_location=device)

        # Support both full checkpoint dict and raw state_dict
        if isinstance(checkpoint, dict) and "model_state_dict" in checkpoint:
            state_dict = checkpoint["model_state_dict"]
            classes = checkpoint.get("classes", DEFAULT_GESTURE_CLASSES)
            hidden_size = checkpoint.get("hidden_size", 64)
            input_dim = checkpoint.get("input_dim", NUM_INPUT_FEATURES)
        else:
            state_dict = checkpoint
            classes = DEFAULT_GESTURE_CLASSES
            hidden_size = state_dict["lstm.weight_hh_l0"].shape[1]
            input_dim = state_dict["lstm.weight_ih_l0"].shape[1]

        model = cls(input_dim=input_dim, hidden_size=hidden_size, num_classes=len(classes))
        model.load_state_dict(state_dict)
        model.to(device)
        model.eval()
        logger.info("Loaded GestureLSTM (%d classes, hidden=%d) from %s",
                    len(classes), hidden_size, path)
        return model, list(classes)

    def save_checkpoint(self, path, classes=None):
        """Save weights plus the metadata ``load_checkpoint`` expects."""
        torch.save({
            "model_state_dict": self.state_dict(),
            "classes": list(classes or DEFAULT_GESTURE_CLASSES),
            "hidden_size": self.hidden_size,
            "input_dim": self.input_dim,
        }, path)
        logger.info("GestureLSTM checkpoint saved to %s", path)
