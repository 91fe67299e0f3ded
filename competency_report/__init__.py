"""
Core logic for the competency report dashboard.

Fetches competency/quiz score reports from the reportanalytics API,
flattens them into table rows and serializes them to spreadsheets.
"""
