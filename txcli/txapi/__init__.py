"""Helpers for the localization service's organizations, projects, resources and async jobs."""