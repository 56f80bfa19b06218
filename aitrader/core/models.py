import asyncio
import os
import pickle

import numpy as np
from sklearn.neural_network import MLPClassifier

from ..constants import CLASS_ORDER, Action
from ..utils.logger import log
from .feature_engine import FeatureEngine

class DecisionModel:
    """
    Feed-forward classifier: 20 features -> 128 -> 64 -> 32 -> softmax over
    (BUY, SELL, HOLD). Learns online, one Adam step per closed trade.
    """

    HIDDEN_LAYERS = (128, 64, 32)

    def __init__(self, n_features: int = FeatureEngine.NUM_FEATURES,
                 learning_rate: float = 0.001, random_state: int = 42):
        self.n_features = n_features
        self.clf = MLPClassifier(
            hidden_layer_sizes=self.HIDDEN_LAYERS,
            activation="relu",
            solver="adam",
            learning_rate_init=learning_rate,
            random_state=random_state,
        )
        self._classes = np.arange(len(CLASS_ORDER))
        self._training = False
        self.updates = 0
        self._prime()

    def _prime(self):
        """Allocate weights with one balanced step on a neutral (all-zero) input
        so that predict works before the first real trade."""
        X = np.zeros((len(self._classes), self.n_features))
        self.clf.partial_fit(X, self._classes, classes=self._classes)

    @property
    def is_training(self) -> bool:
        return self._training

    # -- inference --
    def predict(self, features: np.ndarray) -> np.ndarray:
        """Probabilities in CLASS_ORDER; sums to 1."""
        proba = self.clf.predict_proba(np.asarray(features, dtype=np.float64).reshape(1, -1))[0]
        return proba

    def decide(self, features: np.ndarray) -> tuple[Action, float]:
        """Most probable action and its probability. Ties go to BUY, then SELL."""
        proba = self.predict(features)
        idx = int(np.argmax(proba))
        return CLASS_ORDER[idx], float(proba[idx])

    # -- online learning --
    @staticmethod
    def target_for(action: Action, profit: float) -> Action:
        """Winning trade reinforces the action taken; a loss (or flat close)
        reinforces the opposite direction. HOLD is never flipped."""
        if profit > 0:
            return action
        return action.opposite

    async def learn_from_trade(self, features: np.ndarray, action: Action,
                               profit: float) -> bool:
        """Apply exactly one optimisation step. Returns False, without touching
        the weights, if another step is still running."""
        if self._training:
            log.debug("Learning step already running — update dropped")
            return False

        self._training = True
        try:
            target = self.target_for(action, profit)
            await asyncio.to_thread(self._step, features, target)
        finally:
            self._training = False

        log.info("🧠 Learned from %s trade (P&L %+.2f) → target %s  [updates: %d]",
                 action.value, profit, target.value, self.updates)
        return True

    def _step(self, features: np.ndarray, target: Action):
        X = np.asarray(features, dtype=np.float64).reshape(1, -1)
        y = np.array([CLASS_ORDER.index(target)])
        self.clf.partial_fit(X, y)
        self.updates += 1

    def parameters(self) -> list[np.ndarray]:
        """Copies of all weight matrices and bias vectors."""
        return [p.copy() for p in self.clf.coefs_ + self.clf.intercepts_]

    # -- persistence --
    def save_brain(self, path: str):
        state = {"clf": self.clf, "updates": self.updates, "n_features": self.n_features}
        with open(path, "wb") as f:
            pickle.dump(state, f)
        log.info("🧠 Brain saved to %s (%d updates)", path, self.updates)

    def load_brain(self, path: str) -> bool:
        if not os.path.exists(path):
            return False
        with open(path, "rb") as f:
            state = pickle.load(f)
        if state.get("n_features") != self.n_features:
            log.warning("Brain at %s has %s features, expected %d — ignoring.",
                        path, state.get("n_features"), self.n_features)
            return False
        self.clf = state["clf"]
        self.updates = state.get("updates", 0)
        log.info("🧠 Brain loaded from %s (%d updates)", path, self.updates)
        return True
