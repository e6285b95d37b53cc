"""
Classifier architectures loadable by ModelService.

SequenceNet - LSTM over a landmark window:
    Input  : (batch, frames, 63)
    LSTM   : 2 layers, 64 hidden units
    FC     : 64 -> 32, ReLU
    Output : num_classes logits

CropNet - small CNN over a padded hand crop:
    Input  : (batch, 3, 224, 224) in [0, 1]
    Conv   : 16 -> 32 -> 64 channels, each with BatchNorm, ReLU, MaxPool
    Pool   : global average
    Output : num_classes logits

Checkpoints are either a dict with ``model_state_dict`` and the
hyper-parameters below, or a raw state dict.
"""

import logging

import torch
import torch.nn as nn

from gesturelab.core.types import FEATURE_LENGTH

logger = logging.getLogger(__name__)

SEQUENCE_ARCH = "sequence"
CROP_ARCH = "crop"


class SequenceNet(nn.Module):
    """LSTM classifier for fixed-length landmark sequences."""

    def __init__(self, input_dim=FEATURE_LENGTH, num_classes=10,
                 hidden_dim=64, num_layers=2, dropout=0.2):
        super(SequenceNet, self).__init__()
        self.input_dim = input_dim
        self.hidden_dim = hidden_dim
        self.num_layers = num_layers

        self.lstm = nn.LSTM(
            input_size=input_dim,
            hidden_size=hidden_dim,
            num_layers=num_layers,
            batch_first=True,
            dropout=dropout if num_layers > 1 else 0.0,
        )
        self.head = nn.Sequential(
            nn.Linear(hidden_dim, 32),
            nn.ReLU(inplace=True),
        )
        self.classifier = nn.Linear(32, num_classes)

    def forward(self, x):
        """x: (batch, frames, input_dim) -> (batch, num_classes) logits"""
        out, _ = self.lstm(x)
        x = self.head(out[:, -1, :])
        return self.classifier(x)

    def hparams(self) -> dict:
        return {
            "input_dim": self.input_dim,
            "hidden_dim": self.hidden_dim,
            "num_layers": self.num_layers,
        }


class CropNet(nn.Module):
    """Small CNN classifier for hand crops."""

    def __init__(self, num_classes=10, in_channels=3):
        super(CropNet, self).__init__()
        self.in_channels = in_channels

        def block(cin, cout):
            return nn.Sequential(
                nn.Conv2d(cin, cout, kernel_size=3, padding=1),
                nn.BatchNorm2d(cout),
                nn.ReLU(inplace=True),
                nn.MaxPool2d(2),
            )

        self.features = nn.Sequential(
            block(in_channels, 16),
            block(16, 32),
            block(32, 64),
            nn.AdaptiveAvgPool2d(1),
        )
        self.classifier = nn.Linear(64, num_classes)

    def forward(self, x):
        """x: (batch, 3, H, W) -> (batch, num_classes) logits"""
        x = self.features(x)
        return self.classifier(torch.flatten(x, 1))

    def hparams(self) -> dict:
        return {"in_channels": self.in_channels}


_ARCHITECTURES = {
    SEQUENCE_ARCH: SequenceNet,
    CROP_ARCH: CropNet,
}


def save_checkpoint(model, path, arch, labels=None):
    """Write a checkpoint that load_checkpoint() understands."""
    checkpoint = {
        "arch": arch,
        "num_classes": model.classifier.out_features,
        "model_state_dict": model.state_dict(),
    }
    checkpoint.update(model.hparams())
    if labels is not None:
        checkpoint["labels"] = list(labels)
    torch.save(checkpoint, path)
    logger.info("Saved %s checkpoint to %s", arch, path)


def _infer_arch(state_dict) -> str:
    if any(key.startswith("lstm.") for key in state_dict):
        return SEQUENCE_ARCH
    return CROP_ARCH


def load_checkpoint(path, device="cpu"):
    """Load a trained classifier from a checkpoint.

    Returns:
        (model in eval mode, arch name, labels list or None)
    """
    checkpoint = torch.load(path, map_location=device)

    # Support both full checkpoint dict and raw state_dict
    if isinstance(checkpoint, dict) and "model_state_dict" in checkpoint:
        state_dict = checkpoint["model_state_dict"]
        arch = checkpoint.get("arch") or _infer_arch(state_dict)
        labels = checkpoint.get("labels")
        hparams = {k: checkpoint[k] for k in ("input_dim", "hidden_dim", "num_layers", "in_channels")
                   if k in checkpoint}
    else:
        state_dict = checkpoint
        arch = _infer_arch(state_dict)
        labels = None
        hparams = {}

    num_classes = state_dict["classifier.weight"].shape[0]

    if arch not in _ARCHITECTURES:
        raise ValueError(f"Unknown architecture '{arch}' in {path}")
    if arch == SEQUENCE_ARCH:
        hparams = {k: v for k, v in hparams.items() if k != "in_channels"}
        hparams.setdefault("input_dim", state_dict["lstm.weight_ih_l0"].shape[1])
        hparams.setdefault("hidden_dim", state_dict["lstm.weight_hh_l0"].shape[1])
        hparams.setdefault("num_layers", sum(
            1 for key in state_dict if key.startswith("lstm.weight_ih_l")))
    else:
        hparams = {k: v for k, v in hparams.items() if k == "in_channels"}

    model = _ARCHITECTURES[arch](num_classes=num_classes, **hparams)
    model.load_state_dict(state_dict)
    model.to(device)
    model.eval()
    logger.info("Loaded %s classifier (%d classes) from %s", arch, num_classes, path)
    return model, arch, labels
