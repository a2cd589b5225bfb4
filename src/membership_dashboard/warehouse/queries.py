"""Canonical BigQuery SQL for the dashboard fetchers.

Table identifiers are filled in with str.format ({table}); every value is a
named query parameter.
"""

# MemberPress: subscriptions created inside a window
SUBSCRIPTION_SUMMARY = """
SELECT
  COUNT(*) AS new_subs,
  COUNTIF(status = 'active') AS new_active,
  COUNTIF(status = 'cancelled') AS new_cancelled,
  COUNTIF(status = 'pending') AS new_pending,
  COUNTIF(status = 'suspended') AS new_suspended,
  SUM(CASE WHEN status = 'active' THEN total ELSE 0 END) AS new_mrr
FROM {table}
WHERE created_at BETWEEN TIMESTAMP(@start_date) AND TIMESTAMP(@end_date)
"""

SUBSCRIPTION_CHURN = """
SELECT COUNT(*) AS churned
FROM {table}
WHERE status = 'cancelled'
  AND created_at BETWEEN TIMESTAMP(@start_date) AND TIMESTAMP(@end_date)
"""

SUBSCRIPTION_DAILY = """
SELECT
  DATE(created_at) AS day,
  COUNT(*) AS new_subs,
  COUNTIF(status = 'active') AS still_active
FROM {table}
WHERE created_at BETWEEN TIMESTAMP(@start_date) AND TIMESTAMP(@end_date)
GROUP BY day
ORDER BY day
"""

# MemberPress: run-scoped state
GLOBAL_ACTIVE_TOTALS = """
SELECT
  COUNT(*) AS total_active,
  SUM(total) AS total_mrr,
  COUNTIF(period_type = 'months') AS monthly_subs,
  COUNTIF(period_type = 'years') AS annual_subs
FROM {table}
WHERE status = 'active'
"""

GLOBAL_TOP_PLANS = """
SELECT
  total AS price,
  period_type,
  COUNT(*) AS active_count,
  SUM(total) AS plan_mrr
FROM {table}
WHERE status = 'active' AND total > 0
GROUP BY total, period_type
ORDER BY active_count DESC
LIMIT @plan_limit
"""

GLOBAL_STATUS_HISTOGRAM = """
SELECT status, COUNT(*) AS cnt
FROM {table}
GROUP BY status
ORDER BY cnt DESC
"""

# MemberPress: trial campaign
TRIAL_SUMMARY = """
SELECT
  COUNT(*) AS trials_started,
  COUNTIF(status = 'active'
    AND created_at <= TIMESTAMP_SUB(TIMESTAMP(@as_of), INTERVAL @conversion_days DAY)) AS converted,
  COUNTIF(status = 'active'
    AND created_at > TIMESTAMP_SUB(TIMESTAMP(@as_of), INTERVAL @conversion_days DAY)) AS in_trial,
  COUNTIF(status = 'cancelled') AS cancelled,
  COUNTIF(status = 'pending') AS pending
FROM {table}
WHERE created_at >= TIMESTAMP(@campaign_start)
  AND created_at < TIMESTAMP_ADD(TIMESTAMP(@as_of), INTERVAL 1 DAY)
  AND total = @trial_price
"""

TRIAL_WEEKLY_COHORTS = """
SELECT
  DATE_TRUNC(DATE(created_at), ISOWEEK) AS week_start,
  COUNT(*) AS trials_started,
  COUNTIF(status = 'active'
    AND created_at <= TIMESTAMP_SUB(TIMESTAMP(@as_of), INTERVAL @conversion_days DAY)) AS converted,
  COUNTIF(status = 'active'
    AND created_at > TIMESTAMP_SUB(TIMESTAMP(@as_of), INTERVAL @conversion_days DAY)) AS in_trial,
  COUNTIF(status = 'cancelled') AS cancelled
FROM {table}
WHERE created_at >= TIMESTAMP(@campaign_start)
  AND created_at < TIMESTAMP_ADD(TIMESTAMP(@as_of), INTERVAL 1 DAY)
  AND total = @trial_price
GROUP BY week_start
ORDER BY week_start
"""

# GA4: distinct (user, ga_session_id) pairs with a session_start event
SESSIONS_BY_SOURCE = """
SELECT
  traffic_source.source AS source,
  traffic_source.medium AS medium,
  COUNT(DISTINCT CONCAT(user_pseudo_id, '-',
    CAST((SELECT value.int_value FROM UNNEST(event_params) WHERE key = 'ga_session_id') AS STRING)
  )) AS sessions
FROM {table}
WHERE _TABLE_SUFFIX BETWEEN @start_suffix AND @end_suffix
  AND event_name = 'session_start'
GROUP BY source, medium
ORDER BY sessions DESC
"""

SESSIONS_DAILY = """
SELECT
  _TABLE_SUFFIX AS day_str,
  COUNT(DISTINCT CONCAT(user_pseudo_id, '-',
    CAST((SELECT value.int_value FROM UNNEST(event_params) WHERE key = 'ga_session_id') AS STRING)
  )) AS sessions
FROM {table}
WHERE _TABLE_SUFFIX BETWEEN @start_suffix AND @end_suffix
  AND event_name = 'session_start'
GROUP BY day_str
ORDER BY day_str
"""
