"""Terminal presentation: text layout, frames, themes and the curses driver."""
