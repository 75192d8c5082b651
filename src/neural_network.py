"""
Feed-Forward Network Engine
===========================
Small dense multilayer perceptron trained from scratch on numpy arrays.

  Forward:   ReLU on every hidden layer, logistic sigmoid on the output
             layer (pre-activation saturated to [-500, 500]).
  Dropout:   training only, hidden layers only, each unit zeroed with
             probability ``dropout_rate``. Survivors are NOT rescaled, so
             expected hidden activations are smaller while training than
             at inference.
  Backward:  one example at a time (online SGD). Output delta uses the
             sigmoid shortcut (y - t) * y * (1 - y); hidden deltas go back
             through the transposed next-layer weights and the ReLU mask.
             No momentum, no batching, no weight decay.
  Training:  fixed epoch budget, examples visited in the supplied order
             (no shuffling), early stop once epoch MSE < threshold.

Weights are stored per layer as (out, in) matrices; biases as (out,)
vectors. ``export_state`` / ``load_state`` round-trip both plus the layer
sizes exactly (JSON floats use the shortest round-trip repr).
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from constants import EARLY_STOP_MSE, SIGMOID_CLAMP

log = logging.getLogger("neural_network")


class NetworkConfigError(ValueError):
    """Invalid construction parameters."""


class ModelStateError(ValueError):
    """Serialized network state is malformed or shape-inconsistent."""


def sigmoid(z: np.ndarray) -> np.ndarray:
    z = np.clip(z, -SIGMOID_CLAMP, SIGMOID_CLAMP)
    return 1.0 / (1.0 + np.exp(-z))


def relu(z: np.ndarray) -> np.ndarray:
    return np.maximum(z, 0.0)


def _as_array(values: Any) -> np.ndarray:
    if hasattr(values, "to_numpy"):
        values = values.to_numpy()
    return np.asarray(values, dtype=np.float64).reshape(-1)


# ─── Serialized state ──────────────────────────────────────


@dataclass
class NetworkState:
    """Layer sizes plus per-layer weight matrices and bias vectors."""

    layer_sizes: List[int]
    weights: List[np.ndarray]
    biases: List[np.ndarray]
    learning_rate: Optional[float] = None
    dropout_rate: Optional[float] = None

    def validate(self) -> None:
        sizes = self.layer_sizes
        if len(sizes) < 2 or any(int(s) != s or s <= 0 for s in sizes):
            raise ModelStateError(f"layer_sizes must list at least two positive integers, got {sizes!r}")
        n_layers = len(sizes) - 1
        if len(self.weights) != n_layers or len(self.biases) != n_layers:
            raise ModelStateError(
                f"expected {n_layers} weight matrices and bias vectors for layer_sizes {sizes}, "
                f"got {len(self.weights)} and {len(self.biases)}"
            )
        for i in range(n_layers):
            expected = (sizes[i + 1], sizes[i])
            if self.weights[i].shape != expected:
                raise ModelStateError(
                    f"layer {i} weights have shape {self.weights[i].shape}, expected {expected}"
                )
            if self.biases[i].shape != (sizes[i + 1],):
                raise ModelStateError(
                    f"layer {i} biases have shape {self.biases[i].shape}, expected ({sizes[i + 1]},)"
                )
            if not (np.all(np.isfinite(self.weights[i])) and np.all(np.isfinite(self.biases[i]))):
                raise ModelStateError(f"layer {i} contains non-finite parameters")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "layer_sizes": [int(s) for s in self.layer_sizes],
            "weights": [w.tolist() for w in self.weights],
            "biases": [b.tolist() for b in self.biases],
        }
        if self.learning_rate is not None:
            payload["learning_rate"] = self.learning_rate
        if self.dropout_rate is not None:
            payload["dropout_rate"] = self.dropout_rate
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "NetworkState":
        if not isinstance(payload, dict):
            raise ModelStateError(f"network state must be a mapping, got {type(payload).__name__}")
        missing = [k for k in ("layer_sizes", "weights", "biases") if k not in payload]
        if missing:
            raise ModelStateError(f"network state is missing {', '.join(missing)}")
        try:
            raw_sizes = [float(s) for s in payload["layer_sizes"]]
            weights = [np.array(w, dtype=np.float64) for w in payload["weights"]]
            biases = [np.array(b, dtype=np.float64) for b in payload["biases"]]
        except (TypeError, ValueError) as e:
            raise ModelStateError(f"network state is not numeric / rectangular: {e}") from e
        if any(not s.is_integer() for s in raw_sizes):
            raise ModelStateError(f"layer_sizes must be whole numbers, got {payload['layer_sizes']!r}")
        sizes = [int(s) for s in raw_sizes]

        state = cls(
            layer_sizes=sizes,
            weights=weights,
            biases=biases,
            learning_rate=payload.get("learning_rate"),
            dropout_rate=payload.get("dropout_rate"),
        )
        state.validate()
        return state

    @classmethod
    def from_json(cls, text: str) -> "NetworkState":
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise ModelStateError(f"network state is not valid JSON: {e}") from e
        return cls.from_dict(payload)


@dataclass
class TrainingReport:
    epochs_run: int = 0
    final_mse: Optional[float] = None
    stopped_early: bool = False
    examples: int = 0
    mse_history: List[float] = field(default_factory=list)


# ─── Engine ────────────────────────────────────────────────


class FeedForwardNetwork:
    """Dense MLP: ReLU hidden layers, sigmoid output, per-sample SGD."""

    def __init__(
        self,
        input_size: int,
        hidden_layers: Sequence[int],
        output_size: int,
        learning_rate: float,
        dropout_rate: float = 0.0,
        seed: Optional[int] = None,
    ):
        hidden = list(hidden_layers)
        for name, width in [("input_size", input_size), ("output_size", output_size)] + [
            (f"hidden_layers[{i}]", h) for i, h in enumerate(hidden)
        ]:
            if isinstance(width, bool) or int(width) != width or width <= 0:
                raise NetworkConfigError(f"{name} must be a positive integer, got {width!r}")
        if not math.isfinite(learning_rate) or learning_rate <= 0:
            raise NetworkConfigError(f"learning_rate must be > 0, got {learning_rate!r}")
        if not 0 <= dropout_rate < 1:
            raise NetworkConfigError(f"dropout_rate must be in [0, 1), got {dropout_rate!r}")

        self.layer_sizes: List[int] = [int(input_size)] + [int(h) for h in hidden] + [int(output_size)]
        self.learning_rate = float(learning_rate)
        self.dropout_rate = float(dropout_rate)
        self._rng = np.random.default_rng(seed)

        self.weights: List[np.ndarray] = []
        self.biases: List[np.ndarray] = []
        for fan_in, fan_out in zip(self.layer_sizes[:-1], self.layer_sizes[1:]):
            scale = math.sqrt(2.0 / fan_in)
            self.weights.append((self._rng.random((fan_out, fan_in)) - 0.5) * scale)
            self.biases.append(self._rng.random(fan_out) * 0.1)

        self.status = "initialized"
        self.epochs_trained = 0

    @property
    def input_size(self) -> int:
        return self.layer_sizes[0]

    @property
    def output_size(self) -> int:
        return self.layer_sizes[-1]

    # ─── Propagation ───────────────────────────────────────

    def forward(self, inputs: Any, training: bool = False) -> List[np.ndarray]:
        """Return the activation of every layer, input included."""
        x = _as_array(inputs)
        if x.shape[0] != self.input_size:
            raise ValueError(f"forward: expected {self.input_size} inputs, got {x.shape[0]}")
        x = np.where(np.isfinite(x), x, 0.0)

        activations = [x]
        last = len(self.weights) - 1
        for i, (w, b) in enumerate(zip(self.weights, self.biases)):
            z = w @ activations[-1] + b
            if i == last:
                a = sigmoid(z)
            else:
                a = relu(z)
                if training and self.dropout_rate > 0:
                    dropped = self._rng.random(a.shape[0]) < self.dropout_rate
                    a = np.where(dropped, 0.0, a)
            activations.append(a)
        return activations

    def backward(self, activations: List[np.ndarray], targets: Any) -> None:
        """One gradient-descent step from a single example's activations."""
        y = activations[-1]
        t = _as_array(targets)
        if t.shape != y.shape:
            raise ValueError(f"backward: expected {y.shape[0]} targets, got {t.shape[0]}")

        n_layers = len(self.weights)
        deltas: List[np.ndarray] = [(y - t) * y * (1.0 - y)]
        for i in range(n_layers - 2, -1, -1):
            propagated = self.weights[i + 1].T @ deltas[0]
            deltas.insert(0, np.where(activations[i + 1] > 0, propagated, 0.0))

        lr = self.learning_rate
        for i in range(n_layers):
            self.weights[i] -= lr * np.outer(deltas[i], activations[i])
            self.biases[i] -= lr * deltas[i]

    # ─── Training / inference ──────────────────────────────

    def fit(
        self,
        examples: Sequence[Tuple[Any, Any]],
        epochs: int,
        early_stop_mse: float = EARLY_STOP_MSE,
    ) -> TrainingReport:
        """Online SGD over ``examples`` in order, at most ``epochs`` passes."""
        report = TrainingReport(examples=len(examples))
        if not examples:
            log.info("No training examples - skipping training.")
            return report

        pairs = [(_as_array(x), _as_array(t)) for x, t in examples]
        epochs = max(1, int(epochs))
        log.info("Training %s on %d examples (max %d epochs)", self.layer_sizes, len(pairs), epochs)

        for epoch in range(epochs):
            total_error = 0.0
            for x, t in pairs:
                activations = self.forward(x, training=True)
                err = activations[-1] - t
                total_error += float(np.sum(err * err))
                self.backward(activations, t)

            mse = total_error / len(pairs)
            report.epochs_run = epoch + 1
            report.final_mse = mse
            report.mse_history.append(mse)
            log.debug("   epoch %d: mse=%.6f", epoch + 1, mse)

            if not math.isfinite(mse):
                log.warning("Training diverged at epoch %d (mse=%s); stopping.", epoch + 1, mse)
                break
            if mse < early_stop_mse:
                report.stopped_early = True
                log.info("Early stop at epoch %d (mse=%.6f < %g)", epoch + 1, mse, early_stop_mse)
                break

        self.epochs_trained += report.epochs_run
        self.status = "trained"
        log.info("Training finished: %d epochs, mse=%.6f", report.epochs_run, report.final_mse)
        return report

    def train(self, examples: Sequence[Tuple[Any, Any]], epochs: int) -> TrainingReport:
        return self.fit(examples, epochs=epochs)

    def predict(self, inputs: Any) -> np.ndarray:
        """Raw output vector, dropout disabled, no denormalisation."""
        return self.forward(inputs, training=False)[-1].copy()

    # ─── State ─────────────────────────────────────────────

    def export_state(self) -> NetworkState:
        return NetworkState(
            layer_sizes=list(self.layer_sizes),
            weights=[w.copy() for w in self.weights],
            biases=[b.copy() for b in self.biases],
            learning_rate=self.learning_rate,
            dropout_rate=self.dropout_rate,
        )

    def get_model_state(self) -> str:
        return self.export_state().to_json()

    def load_state(self, state: Union[NetworkState, Dict[str, Any], str]) -> None:
        """Replace layer sizes, weights and biases together; nothing changes on error."""
        if isinstance(state, str):
            state = NetworkState.from_json(state)
        elif isinstance(state, dict):
            state = NetworkState.from_dict(state)
        else:
            state.validate()

        lr = self.learning_rate if state.learning_rate is None else float(state.learning_rate)
        dropout = self.dropout_rate if state.dropout_rate is None else float(state.dropout_rate)
        if not math.isfinite(lr) or lr <= 0 or not 0 <= dropout < 1:
            raise ModelStateError(f"invalid hyperparameters in state (lr={lr!r}, dropout={dropout!r})")

        self.layer_sizes, self.weights, self.biases = (
            list(state.layer_sizes),
            [w.copy() for w in state.weights],
            [b.copy() for b in state.biases],
        )
        self.learning_rate = lr
        self.dropout_rate = dropout
        log.info("Loaded network state %s", self.layer_sizes)
