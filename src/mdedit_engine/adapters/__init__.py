"""Host adapters embedding editing sessions in concrete UIs."""
