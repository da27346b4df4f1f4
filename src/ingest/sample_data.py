from __future__ import annotations

from typing import Any

"""Sample dataset: five clients, workers and tasks with consistent references."""

__all__ = ["SAMPLE_DATA"]

SAMPLE_DATA: dict[str, list[dict[str, Any]]] = {
    "clients": [
        {"ClientID": "C1", "ClientName": "Acme Corp", "PriorityLevel": 3, "RequestedTaskIDs": "T1,T2,T3",
         "GroupTag": "GroupA", "AttributesJSON": '{"location":"New York","budget":100000}'},
        {"ClientID": "C2", "ClientName": "Globex Inc", "PriorityLevel": 1, "RequestedTaskIDs": "T4,T5",
         "GroupTag": "GroupB",
         "AttributesJSON": '{"message":"ensure deliverables align with project scope","location":"London","budget":56000}'},
        {"ClientID": "C3", "ClientName": "Initech", "PriorityLevel": 4, "RequestedTaskIDs": "T1,T3,T4",
         "GroupTag": "GroupA", "AttributesJSON": '{"sla":"24h","vip":true}'},
        {"ClientID": "C4", "ClientName": "Umbrella Co", "PriorityLevel": 5, "RequestedTaskIDs": "T2,T5",
         "GroupTag": "GroupC",
         "AttributesJSON": '{"message":"budget approved pending CFO review","location":"Mumbai","budget":112000}'},
        {"ClientID": "C5", "ClientName": "Stark Industries", "PriorityLevel": 2, "RequestedTaskIDs": "T1,T4,T5",
         "GroupTag": "GroupB", "AttributesJSON": '{"notes":"rush order","budget":200000}'},
    ],
    "workers": [
        {"WorkerID": "W001", "WorkerName": "Alice Thompson", "Skills": "JavaScript,React,Node.js",
         "AvailableSlots": "[1,2,3,4,5]", "MaxLoadPerPhase": 8, "WorkerGroup": "frontend-team",
         "QualificationLevel": "senior"},
        {"WorkerID": "W002", "WorkerName": "Bob Anderson", "Skills": "Python,Django,PostgreSQL",
         "AvailableSlots": "[1,3,5]", "MaxLoadPerPhase": 6, "WorkerGroup": "backend-team",
         "QualificationLevel": "expert"},
        {"WorkerID": "W003", "WorkerName": "Carol Williams", "Skills": "Java,Spring,MySQL",
         "AvailableSlots": "[2,4,5]", "MaxLoadPerPhase": 7, "WorkerGroup": "backend-team",
         "QualificationLevel": "intermediate"},
        {"WorkerID": "W004", "WorkerName": "David Johnson", "Skills": "C#,.NET,SQL Server",
         "AvailableSlots": "[1,2,3,4,5]", "MaxLoadPerPhase": 9, "WorkerGroup": "backend-team",
         "QualificationLevel": "senior"},
        {"WorkerID": "W005", "WorkerName": "Eva Martinez", "Skills": "PHP,Laravel,MySQL",
         "AvailableSlots": "[2,3,4]", "MaxLoadPerPhase": 5, "WorkerGroup": "backend-team",
         "QualificationLevel": "junior"},
    ],
    "tasks": [
        {"TaskID": "T1", "TaskName": "Website Redesign", "Category": "frontend", "Duration": 3,
         "RequiredSkills": "JavaScript,React,CSS", "PreferredPhases": "1-3", "MaxConcurrent": 2},
        {"TaskID": "T2", "TaskName": "Database Migration", "Category": "backend", "Duration": 2,
         "RequiredSkills": "Python,PostgreSQL", "PreferredPhases": "2-3", "MaxConcurrent": 1},
        {"TaskID": "T3", "TaskName": "API Development", "Category": "backend", "Duration": 4,
         "RequiredSkills": "Node.js,Express", "PreferredPhases": "1-4", "MaxConcurrent": 3},
        {"TaskID": "T4", "TaskName": "Mobile App UI", "Category": "mobile", "Duration": 2,
         "RequiredSkills": "Swift,iOS", "PreferredPhases": "3-4", "MaxConcurrent": 2},
        {"TaskID": "T5", "TaskName": "Android Development", "Category": "mobile", "Duration": 5,
         "RequiredSkills": "Kotlin,Android", "PreferredPhases": "1-5", "MaxConcurrent": 2},
    ],
}
