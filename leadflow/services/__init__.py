"""Services - scoring, routing, workflow orchestration and submission handling."""
