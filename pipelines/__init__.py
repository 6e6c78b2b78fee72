"""
Pipeline entry points for Signal Agent.

A run walks seven phases:
1. Initialize - Create the job record
2. Select - Test ranked coins until enough have complete social data
3. Score - Generate signals for the selected coins in parallel
4. Write - Persist each signal
5. Summarize - Count, distribute and rank the signals
6. Notify - Alert on high-confidence signals
7. Complete - Record the final job state
"""
