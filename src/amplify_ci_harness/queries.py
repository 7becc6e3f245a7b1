"""GraphQL documents for the Project Boards schema."""

GET_RANDOM_QUOTE = """
query GetRandomQuote {
  getRandomQuote {
    message
    quote
    author
    timestamp
    totalQuotes
  }
}
"""

LIST_PROJECTS = """
query ListProjects($limit: Int) {
  listProjects(limit: $limit) {
    items {
      id
      title
      status
    }
    nextToken
  }
}
"""

LIST_TODOS = """
query ListTodos($limit: Int) {
  listTodos(limit: $limit) {
    items {
      id
      name
      projectID
    }
    nextToken
  }
}
"""

CREATE_PROJECT = """
mutation CreateProject($input: CreateProjectInput!) {
  createProject(input: $input) {
    id
    title
    description
    status
    color
  }
}
"""

UPDATE_PROJECT = """
mutation UpdateProject($input: UpdateProjectInput!) {
  updateProject(input: $input) {
    id
    title
    status
  }
}
"""

DELETE_PROJECT = """
mutation DeleteProject($input: DeleteProjectInput!) {
  deleteProject(input: $input) {
    id
  }
}
"""

CREATE_TODO = """
mutation CreateTodo($input: CreateTodoInput!) {
  createTodo(input: $input) {
    id
    name
    description
    projectID
  }
}
"""

DELETE_TODO = """
mutation DeleteTodo($input: DeleteTodoInput!) {
  deleteTodo(input: $input) {
    id
  }
}
"""
