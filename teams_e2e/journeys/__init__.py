"""
Team management journeys, run against a live application.

    test_teams_ab      - future-routes cookie switches /teams to the app router
    test_teams_non_org - onboarding, bookings, private teams without organizations
    test_teams_org     - the same features inside an organization

Each test gets its own browser context and its own fixtures; the suite is
safe to run with `pytest -n auto`.
"""
