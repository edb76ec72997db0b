from advisor.recommendations import InsightConfig, generate_considerations, generate_insights
from analytics.utilization import estimate_utilization_bands
from portfolio.simulation import MarginCallStats, PercentileSeries, SimulationConfig, SimulationStatistics


def _stats(success_rate=95.0):
    return SimulationStatistics(median=2_000_000, mean=2_100_000, stddev=500_000, success_rate=success_rate)


def _config(method="simple"):
    return SimulationConfig(initial_value=1_000_000, time_horizon=10, resampling_method=method)


def test_quiet_run_has_no_insights():
    assert generate_insights(_stats(), _config(), cagr=0.07) == []


def test_elevated_margin_call_risk():
    margin = [MarginCallStats(year=1, probability=5, cumulative_probability=5), MarginCallStats(2, 15, 18.2)]
    insights = generate_insights(_stats(), _config(), margin_call_stats=margin)
    assert [i.title for i in insights] == ["Elevated Leverage Risk"]
    assert "18.2%" in insights[0].message
    assert "reduce withdrawals by 20%" in insights[0].action
    assert "100,000" in insights[0].action


def test_insights_sorted_by_severity():
    insights = generate_insights(_stats(success_rate=60.0), _config("regime"), cagr=0.12)
    assert [i.type for i in insights] == ["warning", "note", "info"]
    assert insights[0].title == "Success Probability Concern"


def test_high_utilization_warning():
    loan = PercentileSeries(*[[80.0, 80.0, 10.0]] * 5)
    portfolio = PercentileSeries(*[[100.0, 100.0, 100.0]] * 5)
    bands = estimate_utilization_bands(loan, portfolio, [1, 2, 3])
    insights = generate_insights(_stats(), _config(), utilization=bands)
    assert insights[0].title == "High Credit Utilization"
    assert "67%" in insights[0].message


def test_thresholds_are_configurable():
    relaxed = InsightConfig(success_rate_warning_threshold=50.0)
    assert generate_insights(_stats(success_rate=60.0), _config(), insight_config=relaxed) == []


def test_standard_considerations():
    considerations = generate_considerations()
    assert len(considerations) == 6
    assert considerations[0].message == "No margin calls projected in this scenario."
    assert [c.title for c in considerations][1:] == [
        "Sequence of Returns Risk",
        "Interest Rate Sensitivity",
        "Behavioral Factors",
        "Regulatory Risk",
        "Liquidity Constraints",
    ]
    assert "7.0%" in considerations[2].message


def test_margin_call_consideration_quotes_probability():
    considerations = generate_considerations(margin_call_prob=12.5, interest_rate=0.05)
    assert considerations[0].value == 12.5
    assert considerations[0].message.startswith("12.5%")
    assert "5.0%" in considerations[2].message
