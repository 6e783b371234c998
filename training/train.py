#!/usr/bin/env python3
"""
Standalone training script for GestureLSTM.

Usage::

    python -m training.train
    python -m training.train --epochs 30 --lr 0.002 --windows-per-class 400

The best checkpoint is saved to models/weights/gesture_lstm.pth, where
HybridClassifier picks it up on the next run.
"""

import os
import sys
import time
import logging
import argparse

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim
from torch.utils.data import DataLoader, random_split

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.gesture_net import GestureLSTM
from training.dataset import MotionWindowDataset

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Train GestureLSTM classifier")
    parser.add_argument("--output", default="models/weights/gesture_lstm.pth",
                        help="Checkpoint path")
    parser.add_argument("--epochs", type=int, default=20, help="Number of training epochs")
    parser.add_argument("--batch-size", type=int, default=32, help="Training batch size")
    parser.add_argument("--lr", type=float, default=0.003, help="Learning rate")
    parser.add_argument("--hidden-size", type=int, default=64, help="LSTM hidden units")
    parser.add_argument("--windows-per-class", type=int, default=200,
                        help="Synthetic windows generated per class")
    parser.add_argument("--window-size", type=int, default=20, help="Samples per window")
    parser.add_argument("--val-split", type=float, default=0.2,
                        help="Fraction of data for validation")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    return parser.parse_args(argv)


def run_epoch(model, loader, criterion, device, optimizer=None):
    """One pass over ``loader``; trains when an optimizer is given. Returns (loss, acc)."""
    model.train(optimizer is not None)
    running_loss = 0.0
    correct = 0
    total = 0

    with torch.set_grad_enabled(optimizer is not None):
        for windows, labels in loader:
            windows = windows.to(device)
            labels = labels.to(device)

            logits, _ = model(windows)
            loss = criterion(logits, labels)

            if optimizer is not None:
                optimizer.zero_grad()
                loss.backward()
                optimizer.step()

            running_loss += loss.item() * windows.size(0)
            correct += logits.argmax(1).eq(labels).sum().item()
            total += labels.size(0)

    return running_loss / max(total, 1), correct / max(total, 1)


def main(argv=None):
    args = parse_args(argv)

    torch.manual_seed(args.seed)
    np.random.seed(args.seed)

    device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
    logger.info("Training device: %s", device)

    dataset = MotionWindowDataset(
        windows_per_class=args.windows_per_class,
        window_size=args.window_size,
        seed=args.seed,
    )

    val_size = max(1, int(len(dataset) * args.val_split))
    train_size = len(dataset) - val_size
    train_ds, val_ds = random_split(dataset, [train_size, val_size])
    train_loader = DataLoader(train_ds, batch_size=args.batch_size, shuffle=True)
    val_loader = DataLoader(val_ds, batch_size=args.batch_size, shuffle=False)
    logger.info("Train: %d windows, Val: %d windows", train_size, val_size)

    model = GestureLSTM(hidden_size=args.hidden_size, num_classes=dataset.num_classes).to(device)
    logger.info("GestureLSTM: %d parameters", sum(p.numel() for p in model.parameters()))

    criterion = nn.CrossEntropyLoss()
    optimizer = optim.Adam(model.parameters(), lr=args.lr)

    os.makedirs(os.path.dirname(args.output) or ".", exist_ok=True)
    best_val_acc = -1.0
    start_time = time.time()

    for epoch in range(1, args.epochs + 1):
        train_loss, train_acc = run_epoch(model, train_loader, criterion, device, optimizer)
        val_loss, val_acc = run_epoch(model, val_loader, criterion, device)

        improved = ""
        if val_acc > best_val_acc:
            best_val_acc = val_acc
            improved = " *"
            model.save_checkpoint(args.output, classes=dataset.class_names)

        logger.info(
            "Epoch %3d/%d | Train: loss=%.4f acc=%.3f | Val: loss=%.4f acc=%.3f%s",
            epoch, args.epochs, train_loss, train_acc, val_loss, val_acc, improved,
        )

    logger.info("=" * 60)
    logger.info("Training complete in %.1f seconds", time.time() - start_time)
    logger.info("Best validation accuracy: %.4f", best_val_acc)
    logger.info("Model saved to: %s", args.output)
    logger.info("=" * 60)


if __name__ == "__main__":
    main()
