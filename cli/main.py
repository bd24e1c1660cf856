from cli.commands.edit_cmd import edit


def main():
    edit(prog_name="eo")


if __name__ == "__main__":
    main()
