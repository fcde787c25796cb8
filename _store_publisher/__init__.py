# Store Publisher - Publishing Pipeline Package
#
# This package pushes extension builds to the extension store and follows
# them through the store's automated code review. Each stage is in its own
# file; shared pieces (API client, records, errors) sit next to them.
#
# Everything runs synchronously, one request at a time. Authentication
# tokens, composer manifest parsing and command-line handling belong to the
# calling tool.
#
# Stage flow:
#   1. Filter Software Versions -> 2. Normalize Icon -> 3. Upload Files
#   -> 4. Manage Gallery (independent of a release)
#   -> 5. Code Review -> 6. Publish Binary
#
# After stage 6, review_poller.poll_review() waits for the review verdict.
