"""
Wait Time Tracker - Wait Time Alert Unit Tests
"""

import pytest

from processor.wait_time_alerts import WaitAlert, evaluate_alerts


class TestWaitAlertParse:

    def test_parse_rule(self):
        alert = WaitAlert.parse('space-mountain:30')

        assert alert == WaitAlert(ride_id='space-mountain', max_wait=30)

    def test_parse_splits_on_last_colon(self):
        assert WaitAlert.parse('dl:space:15').ride_id == 'dl:space'

    @pytest.mark.parametrize('rule', ['space-mountain', ':30', 'space:abc', 'space:'])
    def test_parse_rejects_bad_rules(self, rule):
        with pytest.raises(ValueError):
            WaitAlert.parse(rule)


class TestEvaluateAlerts:

    def test_fires_at_or_under_threshold(self, make_ride):
        rides = [make_ride('a', 'Alice', wait=30), make_ride('b', 'Bob', wait=31)]

        triggered = evaluate_alerts(rides, [WaitAlert('a', 30), WaitAlert('b', 30)])

        assert [t.ride.id for t in triggered] == ['a']
        assert triggered[0].wait_time == 30

    def test_non_operating_never_fires(self, make_ride):
        rides = [make_ride('a', status='DOWN', wait=5)]

        assert evaluate_alerts(rides, [WaitAlert('a', 30)]) == []

    def test_missing_standby_never_fires(self, make_ride):
        assert evaluate_alerts([make_ride('a')], [WaitAlert('a', 30)]) == []

    def test_unknown_ride_is_ignored(self, make_ride):
        assert evaluate_alerts([make_ride('a', wait=5)], [WaitAlert('zzz', 30)]) == []

    def test_order_follows_alerts(self, make_ride):
        rides = [make_ride('a', wait=5), make_ride('b', wait=5)]

        triggered = evaluate_alerts(rides, [WaitAlert('b', 10), WaitAlert('a', 10)])

        assert [t.ride.id for t in triggered] == ['b', 'a']

    def test_to_dict(self, make_ride):
        triggered = evaluate_alerts([make_ride('a', 'Alice', wait=5)], [WaitAlert('a', 10)])

        assert triggered[0].to_dict() == {
            'ride_id': 'a',
            'ride_name': 'Alice',
            'wait_time': 5,
            'max_wait': 10
        }
