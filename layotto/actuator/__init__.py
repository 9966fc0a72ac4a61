"""Actuator endpoint registry with health and info endpoints."""