from hypothesis import strategies as st
from mpmath import mp

from rewardflow.model.staking.agents import Agent
from rewardflow.model.staking.fixed_point import ONE, SECONDS_PER_DAY
from rewardflow.model.staking.reward_pool import MultiRewardPool
mp.dps = 50

amount_strategy = st.integers(min_value=ONE // 1000, max_value=10 ** 6 * ONE)
small_amount_strategy = st.integers(min_value=1, max_value=10 ** 6)
time_gap_strategy = st.integers(min_value=0, max_value=3 * SECONDS_PER_DAY)
fixed_point_fraction_strategy = st.integers(min_value=1, max_value=ONE)
exponent_strategy = st.integers(min_value=0, max_value=2000)
agent_count_strategy = st.integers(min_value=1, max_value=4)

lock_duration_strategy = st.integers(min_value=SECONDS_PER_DAY, max_value=100 * SECONDS_PER_DAY)
short_gap_strategy = st.integers(min_value=0, max_value=200)

# (action, agent index, amount, seconds to wait before acting)
pool_action_strategy = st.tuples(
    st.sampled_from(['deposit', 'withdraw', 'claim', 'fund']),
    st.integers(min_value=0, max_value=3),
    amount_strategy,
    time_gap_strategy
)

# (action, agent index, amount, seconds to wait before acting, lock duration)
locked_pool_action_strategy = st.tuples(
    st.sampled_from(['lock', 'unlock', 'claim', 'fund']),
    st.integers(min_value=0, max_value=3),
    amount_strategy,
    time_gap_strategy,
    lock_duration_strategy
)

# (action, agent index, amount, seconds to wait before acting); 'drip' hands the reward source new rewards
checkpoint_pool_action_strategy = st.tuples(
    st.sampled_from(['deposit', 'withdraw', 'claim', 'drip']),
    st.integers(min_value=0, max_value=3),
    amount_strategy,
    st.one_of(short_gap_strategy, time_gap_strategy)
)


def make_agents(count: int, stake_token: str = 'STK', reward_tokens: list[str] = ('RWD',), amount: int = 10 ** 7 * ONE):
    return {
        f'agent_{i}': Agent(
            holdings={stake_token: amount, **{tkn: amount for tkn in reward_tokens}},
            unique_id=f'agent_{i}'
        )
        for i in range(count)
    }


def make_pool(reward_tokens: list[str] = ('RWD',), duration: int = 10 * SECONDS_PER_DAY, **kwargs) -> MultiRewardPool:
    return MultiRewardPool(
        stake_token='STK',
        reward_tokens=list(reward_tokens),
        duration=duration,
        owner='owner',
        **kwargs
    )


@st.composite
def pool_action_sequence(draw, min_size: int = 1, max_size: int = 20, action_strategy=pool_action_strategy):
    return draw(st.lists(action_strategy, min_size=min_size, max_size=max_size))
