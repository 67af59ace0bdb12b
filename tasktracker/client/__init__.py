"""Reminder client: fired-reminder queue, ringtone playback and polling session."""
