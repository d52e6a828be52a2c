from remote_files.cli import main

main()
