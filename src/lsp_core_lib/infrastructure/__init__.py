"""Collaborator protocols, in-memory collaborators and the LLM layer"""
