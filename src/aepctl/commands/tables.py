#!/usr/bin/env python3
"""
Default table descriptors of the get commands.

Any of them can be replaced on the command line with -o table=FILE.
"""

from ..core.table import load_descriptor

TOKEN = load_descriptor("""
columns:
  - name: TOKEN
    path: [token]
  - name: EXPIRES
    path: [expires]
    mode: wide
""")

SANDBOXES = load_descriptor("""
path: [sandboxes]
columns:
  - name: NAME
    path: [name]
  - name: TITLE
    path: [title]
  - name: TYPE
    path: [type]
  - name: STATE
    path: [state]
    mode: wide
  - name: REGION
    path: [region]
    mode: wide
  - name: LAST MODIFIED
    path: [lastModifiedDate]
    format: localTime
""")

SANDBOX = load_descriptor("""
columns:
  - name: NAME
    path: [name]
  - name: TITLE
    path: [title]
  - name: TYPE
    path: [type]
  - name: STATE
    path: [state]
  - name: REGION
    path: [region]
""")

SANDBOX_TYPES = load_descriptor("""
path: [sandboxTypes]
columns:
  - name: NAME
""")

DATASETS = load_descriptor("""
iterator: object
columns:
  - name: ID
    is-id: true
    mode: wide
  - name: NAME
    type: str
    path: [name]
  - name: CREATED
    type: num
    path: [created]
    format: utime
  - name: LAST BATCH STATUS
    type: str
    path: [lastBatchStatus]
  - name: LAST UPDATED
    type: num
    path: [updated]
    format: utime
""")

BATCHES = load_descriptor("""
iterator: object
columns:
  - name: ID
    is-id: true
  - name: STATUS
    path: [status]
  - name: DATASET
    path: [relatedObjects, 0, id]
    mode: wide
  - name: RECORDS
    type: num
    path: [metrics, outputRecordCount]
  - name: CREATED
    type: num
    path: [created]
    format: utime
  - name: DURATION
    type: num
    path: [metrics, durationMs]
    format: duration
    mode: wide
""")

QUERIES = load_descriptor("""
path: [queries]
columns:
  - name: ID
    path: [id]
  - name: STATE
    path: [state]
  - name: CREATED
    path: [created]
    format: localTime
  - name: ELAPSED
    type: num
    path: [elapsedTime]
    format: duration
  - name: CLIENT
    path: [client]
    mode: wide
  - name: SQL
    path: [sql]
    mode: wide
""")

SCHEDULES = load_descriptor("""
path: [schedules]
columns:
  - name: ID
    path: [id]
  - name: NAME
    path: [query, name]
  - name: STATE
    path: [state]
  - name: SCHEDULE
    path: [schedule, schedule]
  - name: CREATED
    path: [created]
    format: localTime
    mode: wide
  - name: USER
    path: [userId]
    mode: wide
""")

RUNS = load_descriptor("""
path: [runsSchedules]
columns:
  - name: ID
    path: [id]
  - name: STATE
    path: [state]
  - name: CREATED
    path: [created]
    format: localTime
  - name: UPDATED
    path: [updated]
    format: localTime
    mode: wide
""")

TEMPLATES = load_descriptor("""
path: [templates]
columns:
  - name: ID
    path: [id]
  - name: NAME
    path: [name]
  - name: LAST UPDATED
    path: [lastUpdatedTime]
    format: localTime
  - name: SQL
    path: [sql]
    mode: wide
""")

CONNECTION = load_descriptor("""
path: [connectionParameters]
iterator: object
columns:
  - name: NAME
    is-id: true
  - name: VALUE
""")

SCHEMAS = load_descriptor("""
path: [results]
columns:
  - name: TITLE
    path: [title]
  - name: ID
    long: SCHEMA ID
    path: ["$id"]
  - name: VERSION
    path: [version]
    mode: wide
""")

SCHEMA = load_descriptor("""
columns:
  - name: TITLE
    path: [title]
  - name: ID
    path: ["$id"]
  - name: CLASS
    path: ["meta:class"]
  - name: VERSION
    path: [version]
""")

BEHAVIORS = load_descriptor("""
path: [results]
columns:
  - name: TITLE
    path: [title]
  - name: ID
    path: ["$id"]
""")

STATS = load_descriptor("""
path: [counts]
iterator: object
columns:
  - name: TYPE
    is-id: true
  - name: COUNT
    type: num
""")

NAMESPACES = load_descriptor("""
columns:
  - name: CODE
    path: [code]
  - name: ID
    type: num
    path: [id]
  - name: NAME
    path: [name]
  - name: TYPE
    path: [idType]
    mode: wide
  - name: DESCRIPTION
    path: [description]
    mode: wide
""")

NAMESPACE = NAMESPACES

XID = load_descriptor("""
columns:
  - name: XID
    path: [xid]
""")

CONNECTIONS = load_descriptor("""
path: [items]
columns:
  - name: ID
    path: [id]
  - name: NAME
    path: [name]
  - name: STATE
    path: [state]
    format: state
  - name: CREATED
    type: num
    path: [createdAt]
    format: utime
  - name: UPDATED
    type: num
    path: [updatedAt]
    format: utime
    mode: wide
""")

POLICIES = load_descriptor("""
path: [policies]
iterator: object
columns:
  - name: RESOURCE
    is-id: true
  - name: PERMISSIONS
    type: list
""")

ENTITIES = load_descriptor("""
path: [children]
columns:
  - name: ID
    path: [entityId]
  - name: TIMESTAMP
    type: num
    path: [timestamp]
    format: utime
  - name: PATH
    meta: path
    mode: wide
""")

CONTAINERS = load_descriptor("""
path: [_embedded, "https://ns.adobe.com/experience/xcore/container"]
columns:
  - name: ID
    path: [instanceId]
  - name: SANDBOX
    path: [_instance, parentName]
  - name: TYPE
    path: [_instance, containerType]
  - name: PRODUCTS
    type: list
    path: [_instance, _meta, products]
    mode: wide
""")

OFFERS = load_descriptor("""
path: [_embedded, results]
columns:
  - name: NAME
    path: [_instance, "xdm:name"]
  - name: STATUS
    path: [_instance, "xdm:status"]
    format: status
  - name: PRIORITY
    type: num
    path: [_instance, "xdm:rank", "xdm:priority"]
  - name: START DATE
    path: [_instance, "xdm:selectionConstraint", "xdm:startDate"]
    format: localTime
    parameters: ["%d %b %y"]
  - name: END DATE
    path: [_instance, "xdm:selectionConstraint", "xdm:endDate"]
    format: localTime
    parameters: ["%d %b %y"]
  - name: LAST MODIFIED
    path: ["repo:lastModifiedDate"]
    format: localTime
  - name: ID
    path: [_instance, "@id"]
    mode: wide
""")
