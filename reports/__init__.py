"""reports/ -- Lecture reports, principal-lecturer feedback, and student ratings."""
