"""Shared configuration, logging, paths and the local store."""
