"""Constants and fakes shared across test modules."""

WALLET_A = "0x" + "a1" * 20
WALLET_B = "0x" + "b2" * 20
OWNER = "0x" + "0c" * 20
TX_1 = "0x" + "11" * 32
TX_2 = "0x" + "22" * 32

START_MS = 1_700_000_000_000
HOUR_MS = 60 * 60 * 1000


class FakeClock:
    """Millisecond clock advanced manually by tests."""

    def __init__(self, start_ms: int = START_MS) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms
