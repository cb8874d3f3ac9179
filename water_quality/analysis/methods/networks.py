"""
LSTM network shared by the anomaly detector and the classifier.
"""

from collections.abc import Sequence

import torch
from torch import nn


class StackedLSTM(nn.Module):
    """Stacked LSTMs followed by a dense head on the last time step

    Dropout follows every LSTM layer. `dense_dropout` is applied after each
    hidden dense layer except the last one.
    """

    def __init__(
        self,
        input_size: int,
        output_size: int,
        lstm_units: Sequence[int] = (64, 32),
        dense_units: Sequence[int] = (16,),
        dropout: float = 0.2,
        dense_dropout: float = 0.0,
    ):
        super().__init__()
        self.lstms = nn.ModuleList()
        in_size = input_size
        for units in lstm_units:
            self.lstms.append(nn.LSTM(input_size=in_size, hidden_size=units, batch_first=True))
            in_size = units
        self.dropout = nn.Dropout(dropout)

        head: list[nn.Module] = []
        for i, units in enumerate(dense_units):
            head.append(nn.Linear(in_size, units))
            head.append(nn.ReLU())
            if dense_dropout > 0 and i < len(dense_units) - 1:
                head.append(nn.Dropout(dense_dropout))
            in_size = units
        head.append(nn.Linear(in_size, output_size))
        self.head = nn.Sequential(*head)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        out = x
        for lstm in self.lstms:
            out, _ = lstm(out)
            out = self.dropout(out)
        return self.head(out[:, -1, :])


def build_network(config: dict, input_size: int, output_size: int) -> StackedLSTM:
    return StackedLSTM(
        input_size=input_size,
        output_size=output_size,
        lstm_units=config.get("lstm_units", (64, 32)),
        dense_units=config.get("dense_units", (16,)),
        dropout=config.get("dropout", 0.2),
        dense_dropout=config.get("dense_dropout", 0.0),
    )


def state_dict_to_lists(network: nn.Module) -> dict[str, list]:
    """JSON-friendly copy of the network weights"""
    return {name: tensor.detach().cpu().tolist() for name, tensor in network.state_dict().items()}


def load_state_lists(network: nn.Module, weights: dict[str, list]) -> nn.Module:
    """Load weights produced by state_dict_to_lists (strict key and shape match)"""
    state = {name: torch.tensor(values, dtype=torch.float32) for name, values in weights.items()}
    network.load_state_dict(state, strict=True)
    network.eval()
    return network
