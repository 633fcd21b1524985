import grpc
import pytest
from grpc_reflection.v1alpha import reflection_pb2, reflection_pb2_grpc


def create_task(stub, title="Test Task", description="Test Description"):
    request = stub.message("CreateTaskRequest")(title=title, description=description)
    return stub.CreateTask(request)


def rpc_error(call, request):
    with pytest.raises(grpc.RpcError) as exc:
        call(request)
    return exc.value


class TestTaskService:
    def test_create_task(self, task_stub):
        task = create_task(task_stub)
        assert task.title == "Test Task"
        assert task.description == "Test Description"
        assert task.completed is False
        assert task.id > 0

    def test_get_task(self, task_stub):
        created = create_task(task_stub, title="Find Me")
        task = task_stub.GetTask(task_stub.message("GetTaskRequest")(id=created.id))
        assert task == created

    def test_get_task_not_found(self, task_stub):
        err = rpc_error(task_stub.GetTask, task_stub.message("GetTaskRequest")(id=999))
        assert err.code() == grpc.StatusCode.NOT_FOUND
        assert err.details() == "Task with id 999 not found"

    def test_list_tasks_empty(self, task_stub):
        response = task_stub.ListTasks(task_stub.message("ListTasksRequest")())
        assert list(response.tasks) == []

    def test_list_tasks_newest_first(self, task_stub):
        ids = [create_task(task_stub, title=f"Task {i}").id for i in range(3)]
        response = task_stub.ListTasks(task_stub.message("ListTasksRequest")())
        assert [t.id for t in response.tasks] == list(reversed(ids))

    def test_update_task_partial(self, task_stub):
        created = create_task(task_stub, title="Original", description="Original Description")
        update = task_stub.message("UpdateTaskRequest")(id=created.id, completed=True)
        task = task_stub.UpdateTask(update)
        assert task.title == "Original"
        assert task.description == "Original Description"
        assert task.completed is True

    def test_update_task_empty_string_is_a_change(self, task_stub):
        created = create_task(task_stub)
        update = task_stub.message("UpdateTaskRequest")(id=created.id, description="")
        task = task_stub.UpdateTask(update)
        assert task.description == ""
        assert task.title == created.title

    def test_update_task_explicit_false(self, task_stub):
        created = create_task(task_stub)
        request = task_stub.message("UpdateTaskRequest")
        task_stub.UpdateTask(request(id=created.id, completed=True))
        task = task_stub.UpdateTask(request(id=created.id, completed=False))
        assert task.completed is False

    def test_update_task_no_fields(self, task_stub):
        created = create_task(task_stub)
        task = task_stub.UpdateTask(task_stub.message("UpdateTaskRequest")(id=created.id))
        assert task == created

    def test_update_task_not_found(self, task_stub):
        err = rpc_error(task_stub.UpdateTask, task_stub.message("UpdateTaskRequest")(id=999, title="Title"))
        assert err.code() == grpc.StatusCode.NOT_FOUND

    def test_delete_task(self, task_stub):
        created = create_task(task_stub, title="Delete Me")
        delete = task_stub.message("DeleteTaskRequest")(id=created.id)
        assert task_stub.DeleteTask(delete).success is True

        err = rpc_error(task_stub.GetTask, task_stub.message("GetTaskRequest")(id=created.id))
        assert err.code() == grpc.StatusCode.NOT_FOUND

        err = rpc_error(task_stub.DeleteTask, delete)
        assert err.code() == grpc.StatusCode.NOT_FOUND


class TestTodoService:
    def test_todo_round_trip(self, todo_stub, task_stub):
        todo = todo_stub.CreateTodo(todo_stub.message("CreateTodoRequest")(title="Water plants", description="Balcony"))
        assert todo.completed is False
        fetched = todo_stub.GetTodo(todo_stub.message("GetTodoRequest")(id=todo.id))
        assert fetched == todo
        assert list(task_stub.ListTasks(task_stub.message("ListTasksRequest")()).tasks) == []


class TestUserService:
    def test_create_and_update_user(self, user_stub):
        user = user_stub.CreateUser(user_stub.message("CreateUserRequest")(name="John Doe", email="john@example.com"))
        assert user.id > 0
        updated = user_stub.UpdateUser(user_stub.message("UpdateUserRequest")(id=user.id, name="Johnny"))
        assert updated.name == "Johnny"
        assert updated.email == "john@example.com"

    def test_duplicate_email(self, user_stub):
        request = user_stub.message("CreateUserRequest")
        user_stub.CreateUser(request(name="John", email="john@example.com"))
        err = rpc_error(user_stub.CreateUser, request(name="Johnny", email="john@example.com"))
        assert err.code() == grpc.StatusCode.ALREADY_EXISTS

    def test_list_users(self, user_stub):
        request = user_stub.message("CreateUserRequest")
        first = user_stub.CreateUser(request(name="User 1", email="user1@example.com"))
        second = user_stub.CreateUser(request(name="User 2", email="user2@example.com"))
        response = user_stub.ListUsers(user_stub.message("ListUsersRequest")())
        assert [u.id for u in response.users] == [second.id, first.id]


class TestReflection:
    def test_services_are_listed(self, grpc_channel):
        stub = reflection_pb2_grpc.ServerReflectionStub(grpc_channel)
        responses = stub.ServerReflectionInfo(iter([reflection_pb2.ServerReflectionRequest(list_services="")]))
        names = {s.name for r in responses for s in r.list_services_response.service}
        assert {"task.TaskService", "todo.TodoService", "user.UserService"} <= names
