 # This module assembles the context the assistant works from

# +---------------------+
# |   Persistence       |   (Durable, per user)
# |---------------------|
# | Leads               |
# | Tasks               |
# | Notes               |
# +---------------------+

#    \    /
#     \  /
#      \/
# +------------------------------+
# |          Snapshot            |   (Assembled once per request)
# |------------------------------|
# | Leads + tasks + notes        |
# | Today's tasks                |
# | Overdue tasks                |
# +------------------------------+
#         |
#         v
#   [System prompt / dashboard]
