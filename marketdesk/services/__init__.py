"""Business services: providers, gateway, EDGAR, alerts and the dashboard facade."""
