"""Pipeline steps.

- publish_target_vector: Publish a Target Vector to the test or
  productive scope and wait for completion
"""
