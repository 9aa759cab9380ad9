"""Beta Intelligence analytics dashboard backend."""
