from .fixed_point import ONE, PRECISION, SECONDS_PER_DAY, pow_fixed

CURVE_HORIZON_DAYS = 1825
DEFAULT_DECAY_RATE = 999 * 10 ** 15  # 0.999 per day


class RewardCurve:
    """
    Emission curve for a token derived from one base reward stream:
    derived = amplifier * base * decay_rate ** days, where day 1 starts at start_time.
    Nothing is emitted after CURVE_HORIZON_DAYS.
    """
    def __init__(
            self,
            base_token: str,
            derived_token: str,
            amplifier: int = ONE,
            decay_rate: int = DEFAULT_DECAY_RATE,
            start_time: int = 0,
            horizon_days: int = CURVE_HORIZON_DAYS
    ):
        if base_token == derived_token:
            raise ValueError('derived token must differ from its base token')
        if amplifier < 0:
            raise ValueError('amplifier must be non-negative')
        if not 0 < decay_rate < ONE:
            raise ValueError('decay_rate must be strictly between 0 and 1x')
        self.base_token = base_token
        self.derived_token = derived_token
        self.amplifier = amplifier
        self.decay_rate = decay_rate
        self.start_time = start_time
        self.horizon_days = horizon_days

    def __repr__(self):
        return f'RewardCurve({self.base_token} -> {self.derived_token}, x{self.amplifier}, decay {self.decay_rate})'

    @staticmethod
    def days(elapsed_time: int) -> int:
        return max(elapsed_time, 0) // SECONDS_PER_DAY + 1

    def decay_factor(self, elapsed_time: int) -> int:
        days = self.days(elapsed_time)
        if days > self.horizon_days:
            return 0
        return pow_fixed(self.decay_rate, days)

    def derived_amount(self, base_amount: int, elapsed_time: int) -> int:
        factor = self.decay_factor(elapsed_time)
        if factor == 0:
            return 0
        return base_amount * self.amplifier // PRECISION * factor // PRECISION

    def derived_amount_at(self, base_amount: int, now: int) -> int:
        return self.derived_amount(base_amount, now - self.start_time)
