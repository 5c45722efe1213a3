"""
Feed-forward network trained by mini-batch gradient descent with momentum.
"""
import numpy as np

from ..base import BaseLearner, DimensionError, require
from ..common.rng import SeededRandom
from ..common.utils import batch_bounds, shuffled_indices
from ..common.validation import sse as sum_squared_error
from ._factory import make_layer
from .layers import Layer

INIT_SEED = 2162018
TRAIN_SEED = 2192018


class NeuralNetwork(BaseLearner):
    """
    Ordered list of layers, each consuming the previous one's activation.

    Layers are appended with ``add_layer`` and never removed. The squared
    error blame omits the factor 2 (``blame = target - output``), which the
    default learning rate already accounts for.

    Training hyperparameters are passed as a plain dict:

    - ``learning_rate`` (float, default 0.03)
    - ``batch_size`` (int, default 1, clamped to the number of rows)
    - ``momentum`` (float, default 0.0); the gradient is scaled by it at
      the start of every batch, so 0 simply resets it
    - ``epochs`` (int, default 1)
    - ``seed`` (int, default 2192018), used when no generator is passed
    - ``verbose`` (bool, default False)

    ``fit`` additionally reads ``tolerance`` (default 1e-4) and
    ``max_periods`` (default 100).

    Args:
        layers (list of Layer, optional): Initial layers, added in order.
    """

    def __init__(self, layers=None):
        self.layers = []
        self.gradient_ = None
        self.loss_curve_ = []
        self.validation_scores_ = []
        for layer in layers or []:
            self.add_layer(layer)

    @property
    def in_size(self):
        self._require_layers()
        return self.layers[0].in_size

    @property
    def out_size(self):
        self._require_layers()
        return self.layers[-1].out_size

    @property
    def out_dims(self):
        self._require_layers()
        return self.layers[-1].out_dims

    def _require_layers(self):
        require(len(self.layers) > 0, "NeuralNetwork: the network has no layers",
                error=ValueError)

    def add_layer(self, layer, dims=None, *extra):
        """
        Append a layer.

        Args:
            layer (Layer or LayerKind): A ready layer, or the kind of layer
                to build with ``make_layer(layer, dims, *extra)``.
            dims (sequence of int, optional): Dimensions when building by
                kind.
            *extra: Extra dimension lists when building by kind.

        Returns:
            NeuralNetwork: self, for chaining.

        Raises:
            DimensionError: If the layer's input size differs from the
                previous layer's output size.
        """
        if not isinstance(layer, Layer):
            require(dims is not None,
                    "add_layer: dimensions are required to build a layer by kind",
                    error=ValueError)
            layer = make_layer(layer, dims, *extra)
        if self.layers:
            prev = self.layers[-1]
            require(layer.in_size == prev.out_size,
                    f"add_layer: {layer.name} expects {layer.in_size} inputs, "
                    f"but {prev.name} produces {prev.out_size}")
        self.layers.append(layer)
        self.gradient_ = None
        return self

    def init_weight(self, weights=None, rng=None):
        """
        Set every layer's weight and drop the persisted momentum gradient.

        Args:
            weights (list of array-like, optional): One vector per layer,
                copied verbatim. Unparametrised layers take an empty vector.
            rng (SeededRandom, optional): Source for random initialisation,
                seeded with 2162018 when omitted.
        """
        self._require_layers()
        self.gradient_ = None
        if weights is not None:
            require(len(weights) == len(self.layers),
                    f"init_weight: expected {len(self.layers)} weight vectors, "
                    f"got {len(weights)}")
            for i, (layer, w) in enumerate(zip(self.layers, weights)):
                w = np.asarray(w, dtype=float).ravel()
                require(w.size == layer.weight.size,
                        f"init_weight: layer {i} ({layer.name}) has "
                        f"{layer.weight.size} weights, got {w.size}")
                layer.weight[:] = w
            return self

        if rng is None:
            rng = SeededRandom(INIT_SEED)
        for layer in self.layers:
            layer.init_weight(rng)
        return self

    @property
    def weights(self):
        """Copies of the per-layer weight vectors."""
        return [layer.weight.copy() for layer in self.layers]

    def weight_vector(self):
        """All weights concatenated in layer order."""
        return np.concatenate([layer.weight for layer in self.layers])

    def activate(self, x):
        """Feed ``x`` through every layer and return the last activation buffer."""
        self._require_layers()
        h = np.asarray(x, dtype=float)
        for layer in self.layers:
            h = layer.activate(h)
        return h

    def predict(self, row):
        return self.activate(row).copy()

    def backprop(self, target):
        """
        Set the output blame to ``target - output`` and propagate it.

        Every layer but the first writes its input blame into the previous
        layer's ``blame``; the blame for the network input is not computed.
        """
        self._require_layers()
        target = np.asarray(target, dtype=float).ravel()
        last = self.layers[-1]
        if target.size != last.out_size:
            raise DimensionError(
                f"backprop: expected a target of size {last.out_size}, got {target.size}")
        np.subtract(target, last.activation, out=last.blame)
        for i in range(len(self.layers) - 1, 0, -1):
            self.layers[i].backprop(self.layers[i - 1].blame)

    def create_gradient(self):
        """Zeroed gradient buffers, one per layer, shaped like the weights."""
        return [np.zeros(layer.weight.size) for layer in self.layers]

    @staticmethod
    def scale_gradient(gradient, c):
        for g in gradient:
            g *= c
        return gradient

    def _check_gradient(self, gradient):
        require(len(gradient) == len(self.layers),
                f"expected {len(self.layers)} gradient vectors, got {len(gradient)}")

    def update_gradient(self, x, gradient):
        """
        Accumulate the weight gradient for input ``x``.

        Requires a preceding ``activate(x)`` and ``backprop``.
        """
        self._check_gradient(gradient)
        h = np.asarray(x, dtype=float)
        for layer, g in zip(self.layers, gradient):
            layer.update_gradient(h, g)
            h = layer.activation
        return gradient

    def refine_weight(self, gradient, rate):
        """``weight += rate * gradient`` for every parametrised layer."""
        self._check_gradient(gradient)
        for layer, g in zip(self.layers, gradient):
            if g.size:
                layer.weight += rate * g

    def central_difference(self, x, target, dt, gradient=None):
        """
        Finite-difference estimate of the gradient ``update_gradient`` computes.

        Each weight is nudged by ``+dt/2`` and ``-dt/2``; the change of the
        output divided by ``dt`` is dotted with ``target - output``.

        Args:
            x (array-like): Input vector.
            target (array-like): Target vector.
            dt (float): Step size.
            gradient (list of ndarray, optional): Buffers to overwrite;
                fresh ones are created when omitted.

        Returns:
            list of ndarray: The estimated gradient.
        """
        require(dt > 0, f"central_difference: dt must be positive, got {dt}",
                error=ValueError)
        if gradient is None:
            gradient = self.create_gradient()
        self._check_gradient(gradient)
        target = np.asarray(target, dtype=float).ravel()
        diff = target - self.activate(x)

        for layer, g in zip(self.layers, gradient):
            w = layer.weight
            for j in range(w.size):
                old = w[j]
                w[j] = old + dt / 2.0
                plus = self.activate(x).copy()
                w[j] = old - dt / 2.0
                minus = self.activate(x)
                w[j] = old
                g[j] = np.dot((plus - minus) / dt, diff)
        self.activate(x)
        return gradient

    def _validate_input(self, features, labels):
        features = np.asarray(features, dtype=float)
        labels = np.asarray(labels, dtype=float)
        if features.ndim == 1:
            features = features.reshape(-1, 1)
        if labels.ndim == 1:
            labels = labels.reshape(-1, 1)
        require(features.ndim == 2 and labels.ndim == 2,
                "features and labels must be 2D arrays")
        require(features.shape[0] == labels.shape[0],
                f"features and labels must have the same number of rows, "
                f"got {features.shape[0]} and {labels.shape[0]}")
        require(features.shape[0] > 0, "cannot train on an empty data set",
                error=ValueError)
        require(features.shape[1] == self.in_size,
                f"expected {self.in_size} feature columns, got {features.shape[1]}")
        require(labels.shape[1] == self.out_size,
                f"expected {self.out_size} label columns, got {labels.shape[1]}")
        return features, labels

    def train(self, features, labels, config=None, rng=None):
        """
        Run ``epochs`` epochs of mini-batch gradient descent.

        Rows are visited through an index permutation that is reshuffled
        (Fisher-Yates) before every epoch; the data itself is not
        reordered. The gradient buffer persists on the network between
        calls so momentum carries over.

        Args:
            features (array-like): Matrix of shape (N, in_size).
            labels (array-like): Matrix of shape (N, out_size).
            config (dict, optional): Hyperparameters, see the class docstring.
            rng (SeededRandom, optional): Shuffle source; overrides
                ``config["seed"]``.

        Returns:
            NeuralNetwork: self.
        """
        features, labels = self._validate_input(features, labels)
        config = config or {}
        learning_rate = config.get("learning_rate", 0.03)
        batch_size = config.get("batch_size", 1)
        momentum = config.get("momentum", 0.0)
        epochs = config.get("epochs", 1)
        verbose = config.get("verbose", False)
        require(learning_rate > 0,
                f"learning_rate must be positive, got {learning_rate}", error=ValueError)
        require(momentum >= 0, f"momentum must be non-negative, got {momentum}",
                error=ValueError)
        require(epochs >= 1, f"epochs must be at least 1, got {epochs}",
                error=ValueError)
        if rng is None:
            rng = SeededRandom(config.get("seed", TRAIN_SEED))

        rows = features.shape[0]
        if self.gradient_ is None:
            self.gradient_ = self.create_gradient()
        gradient = self.gradient_

        order = np.arange(rows)
        for epoch in range(epochs):
            order = order[shuffled_indices(rows, rng)]
            for start, end in batch_bounds(rows, batch_size):
                self.scale_gradient(gradient, momentum)
                for i in order[start:end]:
                    self.activate(features[i])
                    self.backprop(labels[i])
                    self.update_gradient(features[i], gradient)
                self.refine_weight(gradient, learning_rate / (end - start))

            if verbose:
                print(f"Epoch {epoch + 1}/{epochs}, SSE: {self.sse(features, labels):.6f}")
        return self

    def fit(self, features, labels, validation=None, config=None):
        """
        Train in periods until the validation error stops improving.

        Each period is one ``train`` call. Training stops when the relative
        improvement of the validation RMSE falls below ``tolerance`` or
        after ``max_periods`` periods. The per-period training RMSE goes to
        ``loss_curve_`` and the validation RMSE to ``validation_scores_``.

        Args:
            features (array-like): Training features.
            labels (array-like): Training labels.
            validation (tuple, optional): ``(features, labels)`` held out for
                the stopping rule. The training data is used when omitted.
            config (dict, optional): ``train`` hyperparameters plus
                ``tolerance`` and ``max_periods``.

        Returns:
            NeuralNetwork: self.
        """
        features, labels = self._validate_input(features, labels)
        if validation is None:
            val_features, val_labels = features, labels
        else:
            val_features, val_labels = self._validate_input(*validation)
        config = config or {}
        tolerance = config.get("tolerance", 1e-4)
        max_periods = config.get("max_periods", 100)
        verbose = config.get("verbose", False)
        require(max_periods >= 1, f"max_periods must be at least 1, got {max_periods}",
                error=ValueError)
        rng = SeededRandom(config.get("seed", TRAIN_SEED))
        period_config = dict(config, verbose=False)

        self.loss_curve_ = []
        self.validation_scores_ = []
        previous = np.inf
        for period in range(max_periods):
            self.train(features, labels, period_config, rng)
            loss = np.sqrt(self.sse(features, labels) / features.shape[0])
            score = np.sqrt(self.sse(val_features, val_labels) / val_features.shape[0])
            self.loss_curve_.append(loss)
            self.validation_scores_.append(score)

            if verbose:
                print(f"Period {period + 1}/{max_periods}, "
                      f"RMSE: {loss:.6f}, Val RMSE: {score:.6f}")
            if np.isfinite(previous) and previous - score < tolerance * previous:
                if verbose:
                    print(f"Convergence after {period + 1} periods")
                break
            previous = score
        return self

    def sse(self, features, labels):
        return sum_squared_error(self, features, labels)

    def structure(self):
        """``(name, in_size, out_size, weight count)`` for every layer."""
        return [(layer.name, layer.in_size, layer.out_size, layer.weight.size)
                for layer in self.layers]

    def __str__(self):
        lines = ["=======    BEGIN: NeuralNetwork    ======="]
        for layer in self.layers:
            lines.append(f"{layer.name} ({layer.in_size} -> {layer.out_size})")
            lines.append(f" - Activation: {np.array2string(layer.activation, precision=6)}")
            lines.append(f" - Blame: {np.array2string(layer.blame, precision=6)}")
            if layer.weight.size == 0:
                lines.append(" - Weight: empty []")
            else:
                lines.append(f" - Weight: {np.array2string(layer.weight, precision=6)}")
        lines.append("=======     END: NeuralNetwork     =======")
        return "\n".join(lines)

    def __repr__(self):
        inner = " -> ".join(layer.name for layer in self.layers)
        return f"NeuralNetwork(input -> {inner} -> output)" if inner else "NeuralNetwork()"
