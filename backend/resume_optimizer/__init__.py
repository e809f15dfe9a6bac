"""Resume optimization backend and the streaming client that follows its jobs.

The server side (``resume_optimizer.main``) runs optimization jobs and reports
their progress over Server-Sent Events. The client side
(``resume_optimizer.client``) opens that stream, relays progress to the caller
and settles exactly once with the job's terminal outcome.
"""
